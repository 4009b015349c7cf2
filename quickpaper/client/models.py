from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionUser(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    id: str
    email: Optional[str] = None


class Profile(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    signature: Optional[str] = None


class EmailAttachment(BaseModel):
    content: str
    filename: str
    mimetype: str = Field('application/pdf', serialization_alias='type')
    disposition: str = 'attachment'


class EmailMessage(BaseModel):
    to: str
    from_email: str
    from_name: str
    subject: str
    text: str
    html: str
    attachments: list[EmailAttachment] = Field(default_factory=list)

    def payload(self) -> dict:
        """Request body for the v3 mail/send endpoint"""
        data = {
            'personalizations': [{'to': [{'email': self.to}]}],
            'from': {'email': self.from_email, 'name': self.from_name},
            'subject': self.subject,
            'content': [
                {'type': 'text/plain', 'value': self.text},
                {'type': 'text/html', 'value': self.html},
            ],
        }
        if self.attachments:
            data['attachments'] = [attachment.model_dump(by_alias=True) for attachment in self.attachments]
        return data


class SentMessage(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    sid: str
    status: Optional[str] = None
