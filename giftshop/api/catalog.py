from fastapi import APIRouter
from giftshop.db.models import ProductType

router = APIRouter()

PRODUCT_TITLES = {
    ProductType.SONG: "Custom Song",
    ProductType.PORTRAIT: "Portrait",
    ProductType.POETRY: "Poem",
    ProductType.BOOK: "Children's Book",
}

SERVICES = [
    {"product_type": ProductType.SONG, "title": "Custom Song",
     "description": "A personalized song written and produced around the stories you share."},
    {"product_type": ProductType.PORTRAIT, "title": "Portrait",
     "description": "A stylized portrait created from your photo, printed and shipped."},
    {"product_type": ProductType.POETRY, "title": "Poem",
     "description": "An original poem in the tone and form of your choosing."},
    {"product_type": ProductType.BOOK, "title": "Children's Book",
     "description": "An illustrated storybook starring the people in your photos."},
]

@router.get("/")
def catalog():
    return {"services": [dict(s, href=f"/create/{s['product_type'].value}") for s in SERVICES]}
