from moment_client.schemas.base import BaseSchema, ResponseSchema


class SendOtpRequest(BaseSchema):
    email: str
    phone: str


class SendOtpResponse(ResponseSchema):
    detail: str
    expires_at: str


class VerifyOtpRequest(BaseSchema):
    email: str
    phone: str
    otp: str
