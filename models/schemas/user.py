from marshmallow import Schema, fields, pre_load, validate, EXCLUDE

MIN_PASSWORD_LENGTH = 6


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class _EmailNormalizing(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class UserCreateSchema(_EmailNormalizing):
    name = fields.String(allow_none=True, validate=validate.Length(min=3, max=40))
    email = fields.Email(required=True)
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(
            min=MIN_PASSWORD_LENGTH,
            error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
        ),
    )
    location = fields.String(allow_none=True)


class UserLoginSchema(_EmailNormalizing):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    name = fields.String(allow_none=True)
    email = fields.String(allow_none=False)
    role = fields.String()
    is_active = fields.Boolean()
    google_profile_pic = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    login_type = fields.String()
    last_seen = fields.DateTime(allow_none=True)
    has_password = fields.Boolean()
