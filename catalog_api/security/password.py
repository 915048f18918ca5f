from flask import current_app, has_app_context
from werkzeug.security import check_password_hash, generate_password_hash

DEFAULT_HASH_METHOD = "pbkdf2:sha256:600000"
SALT_LENGTH = 16


def hash_password(password: str) -> str:
    method = DEFAULT_HASH_METHOD
    if has_app_context():
        method = current_app.config.get("PASSWORD_HASH_METHOD", DEFAULT_HASH_METHOD)
    return generate_password_hash(password, method=method, salt_length=SALT_LENGTH)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)
