from waitlist.client.signup_form import FormState, SignupForm

__all__ = ["FormState", "SignupForm"]
