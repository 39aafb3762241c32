"""
Recipe format encoders for Bar Pack.

Each export type is bound to exactly one encoder; get_encoder() is the only
place that maps an ExportType to an implementation.

Round-trip formats (schema, xml, yaml) write the draft-02 field set from
RecipeExternal.to_data_pack() and can decode it back into a plain dict.
JSON-LD and Markdown are one-way renderings: they drop substitutes,
calculator ids and stable ids.

All encoders are deterministic: encoding the same recipe twice gives the
same bytes.
"""

import json
import re
import xml.etree.ElementTree as ET
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml

from barpack.services.exceptions import (
    EncodingError,
    MalformedRecordError,
    UnsupportedExportTypeError,
)
from barpack.services.external_models import IngredientUse, RecipeExternal


class ExportType(str, Enum):
    """Target representation of an export."""

    SCHEMA = "schema"
    JSON_LD = "json-ld"
    MARKDOWN = "markdown"
    XML = "xml"
    YAML = "yaml"


def format_amount(value: Optional[float]) -> str:
    """Format a number without trailing zeros (1.0 -> "1", 29.57 -> "29.57")."""
    if value is None:
        return ""
    return "{:f}".format(Decimal(str(value)).normalize())


def describe_ingredient_use(recipe: RecipeExternal, use: IngredientUse) -> str:
    """One-line human description, e.g. "1-2 dash Angostura Bitters (optional)"."""
    parts = []
    if use.amount or use.amount_max:
        amount = format_amount(use.amount)
        if use.amount_max is not None:
            amount = f"{amount}-{format_amount(use.amount_max)}"
        parts.append(amount)
    if use.units:
        parts.append(use.units)
    parts.append(recipe.ingredient_name(use.ingredient_id))

    text = " ".join(parts)
    if use.optional:
        text = f"{text} (optional)"
    if use.note:
        text = f"{text}, {use.note}"
    return text


class RecipeEncoder:
    """Base class for recipe encoders."""

    export_type: ExportType
    file_name: str
    round_trip = False

    def encode(self, recipe: RecipeExternal) -> bytes:
        """
        Serialize one recipe.

        Raises:
            EncodingError: If the recipe contains data the format cannot hold
        """
        try:
            return self._encode(recipe)
        except (TypeError, ValueError, yaml.YAMLError) as e:
            raise EncodingError(self.export_type.value, recipe.id, e)

    def decode(self, data: bytes) -> Dict[str, Any]:
        """
        Parse bytes written by encode() back into draft-02 data.

        Raises:
            MalformedRecordError: If the bytes cannot be parsed
            UnsupportedExportTypeError: For one-way formats
        """
        if not self.round_trip:
            raise UnsupportedExportTypeError(self.export_type.value)
        try:
            return self._decode(data)
        except (ValueError, yaml.YAMLError, ET.ParseError) as e:
            raise MalformedRecordError("recipe", f"cannot parse {self.export_type.value}: {e}")

    def _encode(self, recipe: RecipeExternal) -> bytes:
        raise NotImplementedError

    def _decode(self, data: bytes) -> Dict[str, Any]:
        raise NotImplementedError


# ============================================================================
# Round-trip encoders
# ============================================================================


class SchemaEncoder(RecipeEncoder):
    """Structured-schema JSON (draft 02)."""

    export_type = ExportType.SCHEMA
    file_name = "recipe.json"
    round_trip = True

    def _encode(self, recipe: RecipeExternal) -> bytes:
        text = json.dumps(recipe.to_data_pack(), indent=4, ensure_ascii=False, allow_nan=False)
        return (text + "\n").encode("utf-8")

    def _decode(self, data: bytes) -> Dict[str, Any]:
        return json.loads(data.decode("utf-8"))


class YamlEncoder(RecipeEncoder):
    """YAML rendering of the schema field set."""

    export_type = ExportType.YAML
    file_name = "recipe.yaml"
    round_trip = True

    def _encode(self, recipe: RecipeExternal) -> bytes:
        text = yaml.safe_dump(
            recipe.to_data_pack(),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
        return text.encode("utf-8")

    def _decode(self, data: bytes) -> Dict[str, Any]:
        return yaml.safe_load(data.decode("utf-8"))


# List fields of the schema tree and the element name of their items
XML_LIST_ITEMS = {
    "tags": "tag",
    "images": "image",
    "ingredients": "ingredient",
    "substitutes": "substitute",
    "utensils": "utensil",
    "ingredient_records": "ingredient_record",
    "ingredient_parts": "ingredient_part",
    "prices": "price",
}

# Characters outside the XML 1.0 Char production
XML_INVALID_CHARS = re.compile(r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class XmlEncoder(RecipeEncoder):
    """
    XML rendering of the schema field set.

    Lists become a container element with one child per item (names from
    XML_LIST_ITEMS), None becomes an absent element and booleans are written
    as true/false. Leaf values decode as strings; from_data_pack coerces
    them back to numbers and booleans. Text holding characters XML 1.0
    cannot carry (control characters other than tab, LF and CR) is rejected
    instead of written.
    """

    export_type = ExportType.XML
    file_name = "recipe.xml"
    round_trip = True

    def _encode(self, recipe: RecipeExternal) -> bytes:
        root = ET.Element("recipe")
        self._fill(root, recipe.to_data_pack())
        ET.indent(root, space="    ")
        document = ET.tostring(root, encoding="utf-8", xml_declaration=True) + b"\n"
        # Parsers normalize a literal CR to LF; a character reference survives
        return document.replace(b"\r", b"&#13;")

    def _fill(self, element: ET.Element, data: Dict[str, Any]) -> None:
        for key, value in data.items():
            if value is None:
                continue
            child = ET.SubElement(element, key)
            if key in XML_LIST_ITEMS:
                for item in value:
                    self._write_value(ET.SubElement(child, XML_LIST_ITEMS[key]), item)
            else:
                self._write_value(child, value)

    def _write_value(self, element: ET.Element, value: Any) -> None:
        if isinstance(value, dict):
            self._fill(element, value)
        elif isinstance(value, bool):
            element.text = "true" if value else "false"
        elif isinstance(value, (str, int, float)):
            text = str(value)
            invalid = XML_INVALID_CHARS.search(text)
            if invalid:
                raise ValueError(
                    f"Character {invalid.group()!r} is not allowed in XML element <{element.tag}>"
                )
            element.text = text
        else:
            raise TypeError(f"Cannot write {type(value).__name__} to XML element <{element.tag}>")

    def _decode(self, data: bytes) -> Dict[str, Any]:
        return self._read(ET.fromstring(data))

    def _read(self, element: ET.Element) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for child in element:
            if child.tag in XML_LIST_ITEMS:
                result[child.tag] = [self._read_value(item) for item in child]
            else:
                result[child.tag] = self._read_value(child)
        return result

    def _read_value(self, element: ET.Element) -> Any:
        if len(element):
            return self._read(element)
        return element.text or ""


# ============================================================================
# One-way encoders
# ============================================================================


class JsonLdEncoder(RecipeEncoder):
    """schema.org Recipe document."""

    export_type = ExportType.JSON_LD
    file_name = "recipe.json"

    def _encode(self, recipe: RecipeExternal) -> bytes:
        document: Dict[str, Any] = {
            "@context": "https://schema.org",
            "@type": "Recipe",
            "name": recipe.name,
            "description": recipe.description,
            "recipeCategory": "Cocktail",
            "recipeIngredient": [
                describe_ingredient_use(recipe, use) for use in recipe.ingredients
            ],
            "recipeInstructions": recipe.instructions,
        }
        if recipe.tags:
            document["keywords"] = ", ".join(recipe.tags)
        if recipe.images:
            document["image"] = [image.uri for image in recipe.images]
        if recipe.source:
            document["isBasedOn"] = recipe.source

        text = json.dumps(document, indent=4, ensure_ascii=False, allow_nan=False)
        return (text + "\n").encode("utf-8")


class MarkdownEncoder(RecipeEncoder):
    """
    Human-readable recipe card.

    Sections: title, ingredients, instructions, garnish, notes. The recipe
    description opens the notes section.
    """

    export_type = ExportType.MARKDOWN
    file_name = "recipe.md"

    def _encode(self, recipe: RecipeExternal) -> bytes:
        lines: List[str] = [f"# {recipe.name}", ""]

        lines += ["## Ingredients", ""]
        for use in recipe.ingredients:
            lines.append(f"- {describe_ingredient_use(recipe, use)}")
            if use.substitutes:
                names = ", ".join(recipe.ingredient_name(s.ingredient_id) for s in use.substitutes)
                lines.append(f"    - Substitutes: {names}")
        lines.append("")

        if recipe.instructions:
            lines += ["## Instructions", "", recipe.instructions.strip(), ""]

        if recipe.garnish:
            lines += ["## Garnish", "", recipe.garnish.strip(), ""]

        notes = []
        if recipe.description:
            notes += [recipe.description.strip(), ""]
        if recipe.glass:
            notes.append(f"- Glass: {recipe.glass}")
        if recipe.method:
            notes.append(f"- Method: {recipe.method}")
        if recipe.utensils:
            notes.append(f"- Utensils: {', '.join(recipe.utensils)}")
        if recipe.tags:
            notes.append(f"- Tags: {', '.join(recipe.tags)}")
        if recipe.source:
            notes.append(f"- Source: {recipe.source}")
        if notes:
            lines += ["## Notes", ""] + notes + [""]

        return "\n".join(lines).encode("utf-8")


_ENCODERS = {
    ExportType.SCHEMA: SchemaEncoder,
    ExportType.JSON_LD: JsonLdEncoder,
    ExportType.MARKDOWN: MarkdownEncoder,
    ExportType.XML: XmlEncoder,
    ExportType.YAML: YamlEncoder,
}


def get_encoder(export_type) -> RecipeEncoder:
    """
    Get the encoder for an export type.

    Args:
        export_type: ExportType or its string value (e.g., "yaml")

    Returns:
        RecipeEncoder instance

    Raises:
        ValueError: If the export type is not known
    """
    return _ENCODERS[ExportType(export_type)]()
