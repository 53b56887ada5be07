from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, field_validator
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime

from giftshop.db.models import OrderStatus, ProductType

# --- intake payloads (persisted as input_data, camelCase keys) ---

Occasion = Literal["birthday", "anniversary", "graduation", "wedding", "other"]
MusicStyle = Literal["synthwave", "pop", "folk", "rnb", "hiphop", "rock", "classical"]
PortraitStyle = Literal["cartoon", "watercolor", "pencil", "pop-art", "anime"]
PoetryTone = Literal["romantic", "funny", "inspirational", "nostalgic", "reflective"]
PoetryStyle = Literal["illuminated", "sonnet", "haiku", "freeverse", "limerick", "ode"]
BookStyle = Literal["cute", "watercolor", "cartoon", "classic", "whimsical"]

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class SongInput(_Payload):
    recipient_name: str = Field(alias="recipientName", min_length=2)
    fun_facts: str = Field(alias="funFacts", min_length=10)
    occasion: Occasion
    music_style: MusicStyle = Field(alias="musicStyle")

class PortraitInput(_Payload):
    photo_url: str = Field(alias="photoUrl", min_length=1)
    style: PortraitStyle

class PoetryInput(_Payload):
    subject: str = Field(min_length=2)
    details: str = Field(min_length=10)
    tone: PoetryTone
    style: PoetryStyle

class BookInput(_Payload):
    title: str = Field(min_length=2)
    premise: str = Field(min_length=10)
    photo_urls: List[str] = Field(alias="photoUrls", min_length=1)
    style: BookStyle

class ShippingAddress(BaseModel):
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = ""
    city: str = Field(min_length=1)
    postcode: str = Field(min_length=1)
    country: str = Field(min_length=2, max_length=2)  # ISO2

    @field_validator("country")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

# --- tagged union over product_type ---

class SongSubmission(BaseModel):
    product_type: Literal["song"]
    input_data: SongInput

class PortraitSubmission(BaseModel):
    product_type: Literal["portrait"]
    input_data: PortraitInput
    shipping_address: Optional[ShippingAddress] = None
    phone_number: Optional[str] = None

class PoetrySubmission(BaseModel):
    product_type: Literal["poetry"]
    input_data: PoetryInput

class BookSubmission(BaseModel):
    product_type: Literal["book"]
    input_data: BookInput

OrderSubmission = Annotated[
    Union[SongSubmission, PortraitSubmission, PoetrySubmission, BookSubmission],
    Field(discriminator="product_type"),
]
submission_adapter = TypeAdapter(OrderSubmission)

# One message per field, shown inline next to it.
FIELD_MESSAGES: Dict[str, str] = {
    "recipientName": "Recipient name must be at least 2 characters.",
    "funFacts": "Please provide at least 10 characters of fun facts.",
    "occasion": "Please select an occasion.",
    "musicStyle": "Please select a music style.",
    "photoUrl": "Please upload a photo.",
    "subject": "Subject must be at least 2 characters.",
    "details": "Please provide at least 10 characters of details.",
    "tone": "Please select a tone.",
    "title": "Title must be at least 2 characters.",
    "premise": "Please provide at least 10 characters for the premise.",
    "photoUrls": "Please upload at least one photo.",
    "style": "Please select a style.",
    "shippingAddress": "Please enter a complete shipping address.",
    "phoneNumber": "Please enter a valid phone number.",
}

# --- canonical in-memory order shape ---

class OrderRecord(BaseModel):
    id: str
    owner_id: str
    product_type: ProductType
    input_data: Dict[str, Any] = {}
    shipping_address: Optional[Dict[str, Any]] = None
    phone_number: Optional[str] = None
    status: OrderStatus = OrderStatus.PROCESSING
    output_url: Optional[str] = None
    created_at: datetime

class OrderSummary(BaseModel):
    id: str
    product_type: ProductType
    product_title: str
    status: OrderStatus
    created_at: datetime
    output_url: Optional[str] = None

class SubmitResponse(BaseModel):
    order_id: str
    persisted: bool
    redirect_to: str

class ProfileUpdate(BaseModel):
    full_name: str = Field(min_length=1, max_length=120)

class MagicLinkPayload(BaseModel):
    email: EmailStr
    next: str = "/dashboard"

class PasswordLoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    next: str = "/dashboard"
