from sqlalchemy.orm import declarative_base

Base = declarative_base()

from .subscriber import Subscriber as Subscriber, SubscriberStatus as SubscriberStatus  # noqa: E402
from .subscription_token import SubscriptionToken as SubscriptionToken  # noqa: E402
