from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()


@jwt.expired_token_loader
def _expired_token(_header: dict, _payload: dict) -> tuple[dict[str, str], int]:
    return {"message": "token is invalid or expired", "kind": "unauthorized"}, 401


@jwt.invalid_token_loader
def _invalid_token(_reason: str) -> tuple[dict[str, str], int]:
    return {"message": "token is invalid or expired", "kind": "unauthorized"}, 401


@jwt.unauthorized_loader
def _missing_token(_reason: str) -> tuple[dict[str, str], int]:
    return {"message": "missing authorization token", "kind": "unauthorized"}, 401
