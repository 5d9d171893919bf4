import enum
import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from newsletter.models import Base


class SubscriberStatus(str, enum.Enum):
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


class Subscriber(Base):
    __tablename__ = "subscribers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    subscribed_at = Column(DateTime(timezone=True), nullable=False)
    # 'pending_confirmation' -> 'confirmed', never the other way
    status = Column(
        String,
        nullable=False,
        default=SubscriberStatus.PENDING_CONFIRMATION.value,
        server_default=SubscriberStatus.PENDING_CONFIRMATION.value,
    )

    @property
    def is_confirmed(self) -> bool:
        return self.status == SubscriberStatus.CONFIRMED.value

    def __repr__(self):
        return f"<Subscriber(id={self.id}, email={self.email}, status={self.status})>"
