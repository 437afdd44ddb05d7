from waitlist.models.subscriber import EmailSubscriber, SubscriberStatus

__all__ = ["EmailSubscriber", "SubscriberStatus"]
