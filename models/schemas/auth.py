"""Request bodies of the token endpoints."""
from marshmallow import Schema, fields, pre_load, validate, validates_schema, ValidationError, EXCLUDE

from models.blacklisted_token import REVOCATION_REASONS


class GoogleLoginSchema(Schema):
    """Accepts either `token` or `id_token` for client compatibility."""

    class Meta:
        unknown = EXCLUDE

    token = fields.String(load_default=None)
    id_token = fields.String(load_default=None)

    @validates_schema
    def require_one(self, data, **kwargs):
        if not (data.get("token") or data.get("id_token")):
            raise ValidationError("Google token is required", field_name="token")


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None)

    @pre_load
    def camel_case_alias(self, data, **kwargs):
        if isinstance(data, dict) and "refreshToken" in data and "refresh_token" not in data:
            data = dict(data)
            data["refresh_token"] = data.pop("refreshToken")
        return data


class LogoutSchema(RefreshSchema):
    access_token = fields.String(load_default=None)

    @pre_load
    def access_alias(self, data, **kwargs):
        if isinstance(data, dict) and "accessToken" in data and "access_token" not in data:
            data = dict(data)
            data["access_token"] = data.pop("accessToken")
        return data


class RevokeSessionsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    reason = fields.String(
        load_default="security_concern",
        validate=validate.OneOf(REVOCATION_REASONS),
    )
