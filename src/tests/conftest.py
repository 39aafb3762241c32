"""Pytest configuration and fixtures for Bar Pack tests."""

import pytest
from sqlalchemy.orm import sessionmaker, scoped_session

from barpack.models import (
    Bar,
    Cocktail,
    CocktailIngredient,
    CocktailIngredientSubstitute,
    CocktailMethod,
    Glass,
    Image,
    Ingredient,
    IngredientCategory,
    IngredientPrice,
    PriceCategory,
    Tag,
    Utensil,
)
from barpack.models.base import Base
from barpack.services.database import create_database_engine, session_scope
from barpack.utils.config import Config, reset_config, set_config
from barpack.utils.file_storage import LocalFileStorage


@pytest.fixture(autouse=True)
def app_config(tmp_path, monkeypatch):
    """Point the global configuration at a temporary directory."""
    monkeypatch.delenv("BARPACK_VERSION", raising=False)
    monkeypatch.delenv("BARPACK_HOME", raising=False)
    config = Config(environment="development", base_dir=tmp_path / "barpack")
    config.ensure_directories()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_database_engine("sqlite:///:memory:")

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import barpack.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


@pytest.fixture
def storage(app_config):
    """File storage rooted at the configured uploads directory."""
    return LocalFileStorage(app_config.uploads_dir)


def _add_image(session, storage, file_path, sort, cocktail=None, ingredient=None):
    storage.write_bytes(file_path, f"image bytes of {file_path}".encode("utf-8"))
    image = Image(
        cocktail_id=cocktail.id if cocktail is not None else None,
        ingredient_id=ingredient.id if ingredient is not None else None,
        file_path=file_path,
        file_extension=file_path.rsplit(".", 1)[-1],
        copyright="Bar Pack tests",
        sort=sort,
        placeholder_hash=f"hash-{sort}",
    )
    session.add(image)
    return image


@pytest.fixture
def sample_bar(test_db, storage):
    """
    Create a bar with two cocktails.

    - "Old Fashioned": amounts in ounces and dashes, a substitute, three images
    - "Negroni": amounts in milliliters, one image

    Returns:
        Dict of ids and image paths
    """
    with session_scope() as session:
        bar = Bar(name="Home Bar", slug="home-bar")
        session.add(bar)
        session.flush()

        rocks = Glass(bar_id=bar.id, name="Rocks")
        stir = CocktailMethod(bar_id=bar.id, name="Stir", dilution_percentage=20)
        classic = Tag(bar_id=bar.id, name="Classic")
        bitter = Tag(bar_id=bar.id, name="Bitter")
        spoon = Utensil(bar_id=bar.id, name="Bar spoon")
        spirits = IngredientCategory(bar_id=bar.id, name="Spirits")
        session.add_all([rocks, stir, classic, bitter, spoon, spirits])
        session.flush()

        whiskey = Ingredient(bar_id=bar.id, name="Whiskey", strength=40.0, category_id=spirits.id)
        session.add(whiskey)
        session.flush()

        bourbon = Ingredient(
            bar_id=bar.id,
            name="Bourbon",
            strength=45.0,
            origin="USA",
            color="#c27c0e",
            category_id=spirits.id,
            parent_ingredient_id=whiskey.id,
            description="Corn-based American whiskey",
        )
        rye = Ingredient(
            bar_id=bar.id,
            name="Rye Whiskey",
            strength=45.0,
            category_id=spirits.id,
            parent_ingredient_id=whiskey.id,
        )
        syrup = Ingredient(bar_id=bar.id, name="Demerara Syrup", strength=0.0)
        bitters = Ingredient(bar_id=bar.id, name="Angostura Bitters", strength=44.7)
        gin = Ingredient(bar_id=bar.id, name="Gin", strength=40.0, category_id=spirits.id)
        campari = Ingredient(bar_id=bar.id, name="Campari", strength=25.0)
        vermouth = Ingredient(bar_id=bar.id, name="Sweet Vermouth", strength=16.0)
        session.add_all([bourbon, rye, syrup, bitters, gin, campari, vermouth])
        session.flush()

        retail = PriceCategory(bar_id=bar.id, name="Retail", currency="EUR")
        session.add(retail)
        session.flush()
        session.add_all([
            IngredientPrice(
                ingredient_id=bourbon.id,
                price_category_id=retail.id,
                price=2800,
                amount=700,
                units="ml",
                description="700ml bottle",
            ),
            IngredientPrice(
                ingredient_id=bourbon.id,
                price_category_id=retail.id,
                price=3500,
                amount=1,
                units="l",
                description="1l bottle",
            ),
            IngredientPrice(
                ingredient_id=gin.id,
                price_category_id=retail.id,
                price=2000,
                amount=25.36,
                units="oz",
                description="750ml bottle",
            ),
        ])

        old_fashioned = Cocktail(
            bar_id=bar.id,
            name="Old Fashioned",
            instructions="Stir with ice and strain over a large cube.",
            garnish="Orange peel",
            description="The original cocktail.",
            source="https://example.com/old-fashioned",
            glass_id=rocks.id,
            cocktail_method_id=stir.id,
        )
        old_fashioned.tags = [classic]
        old_fashioned.utensils = [spoon]
        negroni = Cocktail(
            bar_id=bar.id,
            name="Negroni",
            instructions="Stir all ingredients with ice.",
            garnish="Orange slice",
            glass_id=rocks.id,
            cocktail_method_id=stir.id,
        )
        negroni.tags = [bitter, classic]
        session.add_all([old_fashioned, negroni])
        session.flush()

        bourbon_line = CocktailIngredient(
            cocktail_id=old_fashioned.id,
            ingredient_id=bourbon.id,
            amount=2.0,
            units="oz",
            is_specified=True,
            sort=1,
        )
        session.add_all([
            bourbon_line,
            CocktailIngredient(
                cocktail_id=old_fashioned.id,
                ingredient_id=syrup.id,
                amount=0.25,
                units="oz",
                sort=2,
            ),
            CocktailIngredient(
                cocktail_id=old_fashioned.id,
                ingredient_id=bitters.id,
                amount=2.0,
                amount_max=3.0,
                units="dash",
                optional=True,
                note="to taste",
                sort=3,
            ),
            CocktailIngredient(
                cocktail_id=negroni.id, ingredient_id=gin.id, amount=30.0, units="ml", sort=1
            ),
            CocktailIngredient(
                cocktail_id=negroni.id, ingredient_id=campari.id, amount=30.0, units="ml", sort=2
            ),
            CocktailIngredient(
                cocktail_id=negroni.id, ingredient_id=vermouth.id, amount=30.0, units="ml", sort=3
            ),
        ])
        session.flush()
        session.add(
            CocktailIngredientSubstitute(
                cocktail_ingredient_id=bourbon_line.id,
                ingredient_id=rye.id,
                amount=1.5,
                units="oz",
            )
        )

        image_paths = [
            f"cocktails/{old_fashioned.id}/old-fashioned-1.jpg",
            f"cocktails/{old_fashioned.id}/old-fashioned-2.jpg",
            f"cocktails/{old_fashioned.id}/old-fashioned-3.png",
        ]
        for sort, path in enumerate(image_paths, start=1):
            _add_image(session, storage, path, sort, cocktail=old_fashioned)
        negroni_image = f"cocktails/{negroni.id}/negroni.jpg"
        _add_image(session, storage, negroni_image, 1, cocktail=negroni)
        _add_image(session, storage, f"ingredients/{bourbon.id}/bourbon.jpg", 1, ingredient=bourbon)
        session.flush()

        return {
            "bar_id": bar.id,
            "old_fashioned_id": old_fashioned.id,
            "negroni_id": negroni.id,
            "bourbon_id": bourbon.id,
            "rye_id": rye.id,
            "gin_id": gin.id,
            "whiskey_id": whiskey.id,
            "retail_id": retail.id,
            "bourbon_line_id": bourbon_line.id,
            "old_fashioned_images": image_paths,
            "negroni_image": negroni_image,
        }
