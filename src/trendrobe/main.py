import logging
import random
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Annotated, Any, Sequence
from uuid import UUID, uuid4

from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
    Request,
    Response,
    Security,
    UploadFile,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select

from . import db, store
from .analytics import WardrobeReport, analyze_wardrobe, trend_match_percentages
from .auth import verify_token
from .blob_storage import BlobStorage, BlobStorageNotConfigured, get_blob_storage
from .composition import OutfitComposer, Slot, StyleScore
from .events import ChangeNotifier, get_notifier
from .image_utils import identify_image
from .inference import (
    InferenceProxy,
    InferenceTask,
    ItemSuggestion,
    get_inference_proxy,
    suggest_item_details,
)
from .taxonomy import Category, Season, normalize_color
from .trends import TrendBundle, TrendItem, TrendProvider, get_trend_provider

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s.%(msecs)03d %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

PLACEHOLDER_ITEM_IMAGE = "/placeholder.svg?height=300&width=300"
GENERATED_TIP_OCCASIONS = ["Work", "Casual", "Evening Out", "Date Night"]
MIN_ITEMS_TO_GENERATE_TIP = 3
MAX_ITEMS_IN_GENERATED_TIP = 4


def get_session():
    with Session(db.engine) as session:
        yield session


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.create_db_and_tables()
    yield


def custom_generate_unique_id(route: APIRoute):
    # NOTE: this means route names (the name of the function decorated with @app.<method>) must be unique
    return route.name


app = FastAPI(
    lifespan=lifespan,
    generate_unique_id_function=custom_generate_unique_id,
    dependencies=[Security(verify_token)],  # ensures all routes require authentication
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(store.PartialSaveError)
async def partial_save_handler(request: Request, exc: store.PartialSaveError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": f"Partial save: styling tip {exc.styling_tip_id} was created without its items.",
            "styling_tip_id": str(exc.styling_tip_id),
        },
    )


@app.exception_handler(BlobStorageNotConfigured)
async def blob_storage_not_configured_handler(
    request: Request, exc: BlobStorageNotConfigured
):
    logging.error(f"Image upload unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Image uploads are not available."},
    )


def get_current_user_id(
    *,
    jwt_payload: dict[str, Any] = Security(verify_token),
) -> str:
    return jwt_payload["sub"]


class WardrobeItem(BaseModel):
    id: UUID
    name: str
    image_url: str
    category: str
    color: str
    season: str
    created_at: datetime
    updated_at: datetime | None


def to_api_item(item: db.WardrobeItem) -> WardrobeItem:
    return WardrobeItem(
        id=item.id,
        name=item.name,
        image_url=item.image_url,
        category=item.category,
        color=item.color,
        season=item.season,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


class WardrobeItemCreate(BaseModel):
    name: Annotated[str, Field(min_length=1)]
    image_url: str = PLACEHOLDER_ITEM_IMAGE
    category: Category = "Tops"
    color: Annotated[str, Field(min_length=1)] = "Blue"
    season: Season = "All Seasons"

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please provide a name for your item.")
        return value.strip()

    @field_validator("color")
    @classmethod
    def normalize(cls, value: str) -> str:
        return normalize_color(value)


class WardrobeItemUpdate(BaseModel):
    name: Annotated[str, Field(min_length=1)] | None = None
    image_url: str | None = None
    category: Category | None = None
    color: Annotated[str, Field(min_length=1)] | None = None
    season: Season | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.strip():
            raise ValueError("Please provide a name for your item.")
        return value.strip()

    @field_validator("color")
    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        return normalize_color(value) if value is not None else None


def publish_wardrobe(session: Session, notifier: ChangeNotifier, user_id: str):
    items = store.get_wardrobe_items(session, user_id)
    notifier.publish("wardrobe_changed", user_id, [to_api_item(i) for i in items])


def publish_styling_tips(session: Session, notifier: ChangeNotifier, user_id: str):
    tips = store.get_styling_tips(session, user_id)
    notifier.publish("styling_tips_changed", user_id, [to_api_tip(t) for t in tips])


def get_owned_items(
    session: Session, user_id: str, item_ids: Sequence[UUID]
) -> list[db.WardrobeItem]:
    """
    Fetch wardrobe items in the given order, ensuring they all belong to the user.

    Raises a 404 if any of the items doesn't exist or isn't owned by the user.
    """
    found = {
        item.id: item
        for item in session.exec(
            select(db.WardrobeItem)
            .where(db.WardrobeItem.id.in_(item_ids))  # type: ignore
            .where(db.WardrobeItem.user_id == user_id)
        ).all()
    }
    missing = [str(item_id) for item_id in item_ids if item_id not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Wardrobe items not found or not owned by user: {', '.join(missing)}",
        )
    return [found[item_id] for item_id in item_ids]


@app.get("/trends")
def get_trends(
    *,
    trend_provider: TrendProvider = Depends(get_trend_provider),
) -> TrendBundle:
    return trend_provider.get_trend_data()


@app.get("/wardrobe-items")
def get_wardrobe_items(
    *,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
) -> Sequence[WardrobeItem]:
    return [to_api_item(item) for item in store.get_wardrobe_items(session, user_id)]


@app.post("/wardrobe-items", status_code=status.HTTP_201_CREATED)
def create_wardrobe_item(
    *,
    body: WardrobeItemCreate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
) -> WardrobeItem:
    item = store.add_wardrobe_item(
        session, store.NewWardrobeItem(user_id=user_id, **body.model_dump())
    )
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="There was a problem adding your item to the wardrobe.",
        )

    publish_wardrobe(session, notifier, user_id)
    return to_api_item(item)


@app.put("/wardrobe-items/{item_id}")
def update_wardrobe_item(
    *,
    item_id: UUID,
    body: WardrobeItemUpdate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
) -> WardrobeItem:
    if store.get_wardrobe_item(session, user_id, item_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Wardrobe item not found."
        )

    item = store.update_wardrobe_item(
        session, item_id, body.model_dump(exclude_unset=True, exclude_none=True)
    )
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="There was a problem saving your item.",
        )

    publish_wardrobe(session, notifier, user_id)
    return to_api_item(item)


@app.delete("/wardrobe-items/{item_id}")
def delete_wardrobe_item(
    *,
    item_id: UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
):
    # Check if the item exists and is owned by the current user
    if store.get_wardrobe_item(session, user_id, item_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Wardrobe item not found."
        )

    if not store.delete_wardrobe_item(session, item_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="There was a problem removing your item.",
        )

    publish_wardrobe(session, notifier, user_id)
    # Deleting an item also removes it from saved outfits
    publish_styling_tips(session, notifier, user_id)
    return Response(status_code=status.HTTP_200_OK)


class ItemSuggestionRequest(BaseModel):
    image: Annotated[str, Field(min_length=1)]
    """Base64-encoded image, without the data URL prefix."""


@app.post("/wardrobe-items/suggestions")
def suggest_wardrobe_item(
    *,
    body: ItemSuggestionRequest,
    proxy: InferenceProxy = Depends(get_inference_proxy),
) -> ItemSuggestion:
    """
    Suggest a name, category and color for a new wardrobe item from its picture.

    Uses image classification and object detection models. If either model is unavailable,
    its part of the suggestion falls back to the defaults.
    """
    classification = proxy.invoke_or_none(
        InferenceTask.CLASSIFY_IMAGE, {"image": body.image}
    )
    colors = proxy.invoke_or_none(InferenceTask.EXTRACT_COLORS, {"image": body.image})
    return suggest_item_details(classification, colors)


class ImageUpload(BaseModel):
    url: str
    success: bool = True


@app.post("/images", status_code=status.HTTP_201_CREATED)
def upload_image(
    *,
    image: UploadFile,
    blob_storage: BlobStorage = Depends(get_blob_storage),
    user_id: str = Depends(get_current_user_id),
) -> ImageUpload:
    data = image.file.read()
    try:
        image_format = identify_image(data)
    except ValueError as error:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error)
        )

    key = f"wardrobe/{user_id}/{uuid4()}{image_format.extension}"
    logging.info(
        f"Uploading image {key!r} ({image_format.content_type}, {len(data)} bytes)"
    )
    blob_storage.upload(key, data, image_format.content_type)
    return ImageUpload(url=blob_storage.get_url(key))


class StylingTip(BaseModel):
    id: UUID
    title: str
    description: str
    occasion: str
    created_at: datetime
    items: list[WardrobeItem]


def to_api_tip(tip: db.StylingTip) -> StylingTip:
    return StylingTip(
        id=tip.id,
        title=tip.title,
        description=tip.description,
        occasion=tip.occasion,
        created_at=tip.created_at,
        items=[to_api_item(item) for item in store.tip_items(tip)],
    )


class StylingTipCreate(BaseModel):
    title: Annotated[str, Field(min_length=1)]
    description: str = ""
    occasion: str = "Casual"
    item_ids: list[UUID]


def save_styling_tip(
    session: Session,
    notifier: ChangeNotifier,
    fields: store.NewStylingTip,
    item_ids: Sequence[UUID],
) -> StylingTip:
    tip = store.add_styling_tip(session, fields, item_ids)
    if tip is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="There was a problem saving your outfit.",
        )

    publish_styling_tips(session, notifier, fields.user_id)
    return to_api_tip(tip)


@app.get("/styling-tips")
def get_styling_tips(
    *,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
) -> Sequence[StylingTip]:
    return [to_api_tip(tip) for tip in store.get_styling_tips(session, user_id)]


@app.post("/styling-tips", status_code=status.HTTP_201_CREATED)
def create_styling_tip(
    *,
    body: StylingTipCreate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
) -> StylingTip:
    # Ensure that the items exist AND belong to the current user
    items = get_owned_items(session, user_id, body.item_ids)

    return save_styling_tip(
        session,
        notifier,
        store.NewStylingTip(
            user_id=user_id,
            title=body.title,
            description=body.description,
            occasion=body.occasion,
        ),
        [item.id for item in items],
    )


@app.post("/styling-tips/generate", status_code=status.HTTP_201_CREATED)
def generate_styling_tip(
    *,
    session: Session = Depends(get_session),
    proxy: InferenceProxy = Depends(get_inference_proxy),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
) -> StylingTip:
    """
    Put together an outfit from a random selection of up to 4 wardrobe items.

    The text generation model is asked for styling tips on the selection; the outfit is
    saved whether or not that request succeeds.
    """
    wardrobe = store.get_wardrobe_items(session, user_id)
    if len(wardrobe) < MIN_ITEMS_TO_GENERATE_TIP:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="You need at least 3 items in your wardrobe to generate styling tips.",
        )

    selected = random.sample(
        list(wardrobe), k=min(MAX_ITEMS_IN_GENERATED_TIP, len(wardrobe))
    )
    occasion = random.choice(GENERATED_TIP_OCCASIONS)

    proxy.invoke_or_none(
        InferenceTask.GENERATE_STYLING_TIPS,
        {"items": [item.name for item in selected], "occasion": occasion},
    )

    return save_styling_tip(
        session,
        notifier,
        store.NewStylingTip(
            user_id=user_id,
            title=f"AI-Generated {occasion} Look",
            description="This outfit was created using Hugging Face's AI models to analyze your wardrobe items.",
            occasion=occasion,
        ),
        [item.id for item in selected],
    )


@app.delete("/styling-tips/{tip_id}")
def delete_styling_tip(
    *,
    tip_id: UUID,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
):
    # Check if the tip exists and is owned by the current user
    if store.get_styling_tip(session, user_id, tip_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Styling tip not found."
        )

    if not store.delete_styling_tip(session, tip_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="There was a problem removing your styling tip.",
        )

    publish_styling_tips(session, notifier, user_id)
    return Response(status_code=status.HTTP_200_OK)


class OutfitSelection(BaseModel):
    item_ids: list[UUID]
    """Selected wardrobe items, in the order they were picked."""


class OutfitSlot(BaseModel):
    slot: Slot
    item: WardrobeItem


class OutfitEvaluation(BaseModel):
    slots: list[OutfitSlot]
    score: StyleScore
    feedback: str
    trend_matches: list[TrendItem]


class OutfitCreate(OutfitSelection):
    name: str
    occasion: str = "Casual"


def compose_outfit(
    session: Session, user_id: str, item_ids: Sequence[UUID]
) -> OutfitComposer:
    # Picking the same item twice places it once
    unique_ids = list(dict.fromkeys(item_ids))
    return OutfitComposer(get_owned_items(session, user_id, unique_ids))


@app.post("/outfits/evaluate")
def evaluate_outfit(
    *,
    body: OutfitSelection,
    session: Session = Depends(get_session),
    trend_provider: TrendProvider = Depends(get_trend_provider),
    user_id: str = Depends(get_current_user_id),
) -> OutfitEvaluation:
    composer = compose_outfit(session, user_id, body.item_ids)
    score = composer.style_score()
    return OutfitEvaluation(
        slots=[
            OutfitSlot(slot=assignment.slot, item=to_api_item(assignment.item))
            for assignment in composer.assignments
        ],
        score=score,
        feedback=composer.feedback(),
        trend_matches=composer.trend_matches(trend_provider.get_trend_items()),
    )


@app.post("/outfits", status_code=status.HTTP_201_CREATED)
def create_outfit(
    *,
    body: OutfitCreate,
    session: Session = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
    user_id: str = Depends(get_current_user_id),
) -> StylingTip:
    composer = compose_outfit(session, user_id, body.item_ids)

    message = composer.validate_for_save(body.name)
    if message is not None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message
        )

    return save_styling_tip(
        session,
        notifier,
        store.NewStylingTip(
            user_id=user_id,
            title=body.name.strip(),
            description=f"Custom outfit for {body.occasion}",
            occasion=body.occasion,
        ),
        [item.id for item in composer.items],
    )


@app.get("/wardrobe/statistics")
def get_wardrobe_statistics(
    *,
    session: Session = Depends(get_session),
    trend_provider: TrendProvider = Depends(get_trend_provider),
    user_id: str = Depends(get_current_user_id),
) -> WardrobeReport:
    return analyze_wardrobe(
        store.get_wardrobe_items(session, user_id), trend_provider.get_trend_items()
    )


class TrendMatchReport(BaseModel):
    matches: dict[str, int]
    """Match percentage for each of the top trends."""


@app.get("/wardrobe/trend-match")
def get_trend_match(
    *,
    session: Session = Depends(get_session),
    trend_provider: TrendProvider = Depends(get_trend_provider),
    proxy: InferenceProxy = Depends(get_inference_proxy),
    user_id: str = Depends(get_current_user_id),
) -> TrendMatchReport:
    wardrobe = store.get_wardrobe_items(session, user_id)
    trends = trend_provider.get_trend_items()
    if not wardrobe or not trends:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="You need wardrobe items and trend data to perform analysis.",
        )

    top_trends = trends[:5]
    result = proxy.invoke_or_none(
        InferenceTask.ANALYZE_TREND_MATCH,
        {
            "images": [item.image_url for item in wardrobe],
            "trends": [trend.title for trend in top_trends],
        },
    )
    if result is None:
        return TrendMatchReport(matches={})

    return TrendMatchReport(matches=trend_match_percentages(wardrobe, top_trends))


class InferenceBody(BaseModel):
    # A missing task is answered by the proxy as an invalid task
    task: str = ""
    data: dict[str, Any] = {}


class InferenceResponse(BaseModel):
    result: Any | None = None
    error: Any | None = None


@app.post("/inference", response_model=InferenceResponse, response_model_exclude_none=True)
def run_inference(
    *,
    body: InferenceBody,
    proxy: InferenceProxy = Depends(get_inference_proxy),
):
    outcome = proxy.invoke(body.task, body.data)
    content: dict[str, Any] = (
        {"result": outcome.result} if outcome.ok else {"error": outcome.error}
    )
    return JSONResponse(status_code=outcome.status_code, content=content)
