"""Small builders shared by the test modules."""

from decimal import Decimal
from io import BytesIO
from unittest.mock import Mock

from PIL import Image as PILImage

from roomlift.models import AIModel, Image, User

ORIGINAL_URL = "https://res.cloudinary.com/demo/image/upload/v1/roomlift/originals/living-room.png"
RESULT_URL = "https://res.cloudinary.com/demo/image/upload/v1/roomlift/results/enhanced.png"


def make_png_bytes(color="white", size=(64, 48), fmt="PNG"):
    buffer = BytesIO()
    PILImage.new("RGB", size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_response(status_code=200, json_data=None, content=b"", text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = content
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


def make_storage(source=None, result_url=RESULT_URL):
    storage = Mock()
    storage.download.return_value = source if source is not None else make_png_bytes()
    storage.upload.return_value = result_url
    return storage


def create_user(username="agent@example.com", balance="5.00"):
    return User.objects.create(
        username=username,
        email=username,
        credit_balance=Decimal(balance),
    )


def create_image(user, status=Image.STATUS_ORIGINAL, **extra):
    fields = {
        "folder_id": "listing-42",
        "name": "living-room.png",
        "mime_type": "image/png",
        "original_url": ORIGINAL_URL,
    }
    fields.update(extra)
    return Image.objects.create(user=user, status=status, **fields)


def create_openai_model(**extra):
    fields = {
        "model_identifier": "gpt-image-1",
        "provider": "openai",
        "provider_kind": AIModel.PROVIDER_KIND_SYNC,
        "display_name": "GPT Image 1",
    }
    fields.update(extra)
    return AIModel.objects.create(**fields)


def create_fal_model(**extra):
    fields = {
        "model_identifier": "fal-ai/reve/remix",
        "provider": "fal-ai",
        "provider_kind": AIModel.PROVIDER_KIND_ASYNC_QUEUE,
        "display_name": "Reve Remix",
    }
    fields.update(extra)
    return AIModel.objects.create(**fields)
