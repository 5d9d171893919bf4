from sqlalchemy import Column, ForeignKey, String, Uuid

from newsletter.models import Base


class SubscriptionToken(Base):
    """Confirmation token emailed to a subscriber. Tokens do not expire."""

    __tablename__ = "subscription_tokens"

    subscription_token = Column(String, primary_key=True)
    subscriber_id = Column(Uuid, ForeignKey("subscribers.id"), nullable=False, index=True)
