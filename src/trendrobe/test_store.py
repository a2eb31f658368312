from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select
from sqlmodel.pool import StaticPool

from . import db, store


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


def new_item(name: str = "White T-Shirt", user_id: str = "auth0|1"):
    return store.NewWardrobeItem(
        user_id=user_id,
        name=name,
        image_url="/placeholder.svg",
        category="Tops",
        color="White",
        season="All Seasons",
    )


def new_tip(user_id: str = "auth0|1"):
    return store.NewStylingTip(
        user_id=user_id,
        title="Office Ready",
        description="Custom outfit for Work",
        occasion="Work",
    )


class TestWardrobeItems:
    def test_add_and_get(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())

        assert item is not None
        assert item.name == "White T-Shirt"
        assert item.updated_at is None
        assert store.get_wardrobe_item(session, "auth0|1", item.id) == item

    def test_get_is_scoped_to_owner(self, session: Session):
        item = store.add_wardrobe_item(session, new_item(user_id="auth0|2"))
        assert item is not None

        assert store.get_wardrobe_item(session, "auth0|1", item.id) is None
        assert store.get_wardrobe_items(session, "auth0|1") == []

    def test_newest_first(self, session: Session):
        now = datetime.now(timezone.utc)
        for i, name in enumerate(["old", "middle", "new"]):
            session.add(
                db.WardrobeItem(
                    user_id="auth0|1",
                    name=name,
                    image_url="/placeholder.svg",
                    category="Tops",
                    color="Blue",
                    season="All Seasons",
                    created_at=now + timedelta(minutes=i),
                )
            )
        session.commit()

        items = store.get_wardrobe_items(session, "auth0|1")

        assert [item.name for item in items] == ["new", "middle", "old"]

    def test_update(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None
        item_id = item.id

        updated = store.update_wardrobe_item(
            session, item_id, {"name": "Black T-Shirt", "color": "Black"}
        )

        assert updated is not None
        assert updated.name == "Black T-Shirt"
        assert updated.color == "Black"
        assert updated.category == "Tops"
        assert updated.updated_at is not None

    def test_update_ignores_identity_fields(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None
        item_id = item.id

        updated = store.update_wardrobe_item(
            session, item_id, {"id": uuid4(), "user_id": "auth0|2"}
        )

        assert updated is not None
        assert updated.id == item_id
        assert updated.user_id == "auth0|1"

    def test_update_missing(self, session: Session):
        assert store.update_wardrobe_item(session, uuid4(), {"name": "x"}) is None

    def test_delete(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None

        assert store.delete_wardrobe_item(session, item.id) is True
        assert store.get_wardrobe_items(session, "auth0|1") == []
        assert store.delete_wardrobe_item(session, item.id) is False

    def test_delete_removes_outfit_items(self, session: Session):
        top = store.add_wardrobe_item(session, new_item("Top"))
        bottom = store.add_wardrobe_item(session, new_item("Bottom"))
        assert top is not None and bottom is not None
        tip = store.add_styling_tip(session, new_tip(), [top.id, bottom.id])
        assert tip is not None
        tip_id = tip.id

        assert store.delete_wardrobe_item(session, top.id) is True

        session.expire_all()
        saved = store.get_styling_tip(session, "auth0|1", tip_id)
        assert saved is not None
        assert [item.name for item in store.tip_items(saved)] == ["Bottom"]

    def test_database_error_returns_empty(self, session: Session):
        with patch.object(session, "exec", side_effect=SQLAlchemyError("boom")):
            assert store.get_wardrobe_items(session, "auth0|1") == []
            assert store.get_wardrobe_item(session, "auth0|1", uuid4()) is None

    def test_add_failure_returns_none(self, session: Session):
        with patch.object(session, "commit", side_effect=SQLAlchemyError("boom")):
            assert store.add_wardrobe_item(session, new_item()) is None


class TestStylingTips:
    def test_add_keeps_item_order(self, session: Session):
        names = ["Sweater", "Pants", "Blazer", "Loafers"]
        items = [store.add_wardrobe_item(session, new_item(name)) for name in names]
        item_ids = [item.id for item in items if item is not None]

        tip = store.add_styling_tip(session, new_tip(), list(reversed(item_ids)))

        assert tip is not None
        assert [oi.position for oi in tip.outfit_items] == [1, 2, 3, 4]
        assert [item.name for item in store.tip_items(tip)] == list(reversed(names))

    def test_get_styling_tips(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None
        store.add_styling_tip(session, new_tip(), [item.id])
        store.add_styling_tip(session, new_tip(user_id="auth0|2"), [])

        tips = store.get_styling_tips(session, "auth0|1")

        assert len(tips) == 1
        assert tips[0].title == "Office Ready"
        assert [i.id for i in store.tip_items(tips[0])] == [item.id]

    def test_delete_removes_outfit_items_only(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None
        tip = store.add_styling_tip(session, new_tip(), [item.id])
        assert tip is not None

        assert store.delete_styling_tip(session, tip.id) is True

        assert session.exec(select(db.OutfitItem)).all() == []
        assert store.get_wardrobe_item(session, "auth0|1", item.id) is not None
        assert store.delete_styling_tip(session, tip.id) is False

    def test_partial_save(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None
        commit = session.commit
        calls = []

        def commit_tip_only():
            calls.append(None)
            if len(calls) > 1:
                raise SQLAlchemyError("boom")
            commit()

        with patch.object(session, "commit", side_effect=commit_tip_only):
            with pytest.raises(store.PartialSaveError) as exc_info:
                store.add_styling_tip(session, new_tip(), [item.id])

        tip_id = exc_info.value.styling_tip_id
        saved = store.get_styling_tip(session, "auth0|1", tip_id)
        assert saved is not None
        assert saved.outfit_items == []

    def test_reload_failure_still_returns_tip(self, session: Session):
        item = store.add_wardrobe_item(session, new_item())
        assert item is not None
        refresh = session.refresh
        calls = []

        def fail_final_reload(instance):
            calls.append(None)
            if len(calls) > 1:
                raise SQLAlchemyError("boom")
            refresh(instance)

        with patch.object(session, "refresh", side_effect=fail_final_reload):
            tip = store.add_styling_tip(session, new_tip(), [item.id])

        assert tip is not None
        saved = store.get_styling_tip(session, "auth0|1", tip.id)
        assert saved is not None
        assert [i.id for i in store.tip_items(saved)] == [item.id]

    def test_tip_failure_returns_none(self, session: Session):
        with patch.object(session, "commit", side_effect=SQLAlchemyError("boom")):
            assert store.add_styling_tip(session, new_tip(), []) is None
        assert store.get_styling_tips(session, "auth0|1") == []
