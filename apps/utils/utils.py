import secrets


def generate_order_number():
    """
    'R' + 9 digits, e.g. R482910375
    """
    return "R" + "".join(secrets.choice("0123456789") for _ in range(9))


def generate_token():
    return secrets.token_urlsafe(16)
