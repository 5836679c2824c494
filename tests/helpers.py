from shared.models.user import SignupForm

ADMIN_KEY = "164645"


def signup_form(name: str, email: str, admin_key: str = "") -> SignupForm:
    return SignupForm(name=name, email=email, password="secret1", confirm_password="secret1", admin_key=admin_key)
