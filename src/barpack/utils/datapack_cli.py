"""
Data Pack CLI Utility

Command-line interface for exporting a bar to a data-pack archive and
reading archives back. No UI required; designed for scripting and testing.

Usage Examples:
    # Export bar 1 as structured-schema JSON, amounts in original units
    bar-pack export 1 -o bar.zip

    # Export bar 1 as YAML with every amount converted to milliliters
    bar-pack export 1 -o bar.zip --type yaml --units ml

    # Show the manifest and recipe entries of an archive
    bar-pack inspect bar.zip

    # Decode every recipe of an archive and restore its images
    bar-pack import bar.zip --images-dir ./restored

    # Read ingredients from a spreadsheet export
    bar-pack import-ingredients ingredients.csv
"""

import argparse
import logging
import sys
from datetime import datetime

from barpack.services.exceptions import ServiceError
from barpack.services.recipe_encoders import ExportType
from barpack.services.unit_converter import ForceUnits
from barpack.utils.config import get_config


def export_cmd(
    bar_id: int,
    output_path: str = None,
    export_type: str = ExportType.SCHEMA.value,
    units: str = ForceUnits.ORIGINAL.value,
    workers: int = 1,
):
    """
    Export a bar to a data-pack archive.

    Args:
        bar_id: Bar to export
        output_path: Archive path (default: <exports dir>/<bar id>/<timestamp>_recipes_<type>.zip)
        export_type: Recipe entry format
        units: Target unit for ingredient amounts
        workers: Worker threads

    Returns:
        0 on success, 1 on failure
    """
    from barpack.services.database import initialize_app_database
    from barpack.services.recipe_export_service import export_bar

    if output_path is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = str(
            get_config().exports_dir / str(bar_id) / f"{timestamp}_recipes_{export_type}.zip"
        )

    print("Initializing database...")
    initialize_app_database()

    print(f"Exporting bar {bar_id} to {output_path}...")
    try:
        result = export_bar(
            bar_id,
            output_path,
            export_type=export_type,
            units=units,
            max_workers=workers,
            called_from="cli",
        )
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    print(result.get_summary())
    return 0


def inspect_cmd(archive_path: str):
    """
    Print the manifest and recipe entries of an archive.

    Returns:
        0 on success, 1 on failure
    """
    from barpack.services.recipe_import_service import open_archive

    try:
        with open_archive(archive_path) as handle:
            manifest = handle.read_manifest()
            names = handle.recipe_entry_names()
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Archive:     {archive_path}")
    print(f"Version:     {manifest.version}")
    print(f"Type:        {manifest.export_type.value}")
    print(f"Date:        {manifest.date}")
    print(f"Called from: {manifest.called_from}")
    print(f"Units:       {manifest.units}")
    if manifest.schema:
        print(f"Schema:      {manifest.schema}")
    print(f"Recipes:     {len(names)}")
    for name in names:
        print(f"  {name}")
    return 0


def import_cmd(archive_path: str, images_dir: str = None):
    """
    Decode every recipe of an archive, optionally restoring images.

    Returns:
        0 when every entry was decoded, 1 otherwise
    """
    from barpack.services.recipe_import_service import materialize_images, open_archive
    from barpack.utils.file_storage import LocalFileStorage

    print(f"Importing recipes from {archive_path}...")
    try:
        with open_archive(archive_path) as handle:
            result = handle.load_recipes()
            if images_dir is not None:
                storage = LocalFileStorage(images_dir)
                for recipe in result.recipes:
                    written = materialize_images(handle, recipe, storage, recipe.id)
                    if written:
                        print(f"  {recipe.id}: {len(written)} image(s) restored")
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    print(result.get_summary())
    for recipe in result.recipes:
        print(f"  {recipe.id}: {recipe.name} ({len(recipe.ingredients)} ingredients)")

    return 1 if result.failures else 0


def import_ingredients_cmd(csv_path: str):
    """
    Read ingredients from a CSV file.

    Returns:
        0 when every row was read, 1 otherwise
    """
    from barpack.services.ingredient_import_service import import_ingredients_csv

    print(f"Reading ingredients from {csv_path}...")
    try:
        result = import_ingredients_csv(csv_path)
    except (ServiceError, OSError) as e:
        print(f"ERROR: {e}")
        return 1

    print(result.get_summary())
    for ingredient in result.ingredients:
        print(f"  {ingredient.id}: {ingredient.name}")

    return 1 if result.errors else 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="bar-pack",
        description="Recipe data-pack export/import utility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Export a bar (structured-schema JSON):
    bar-pack export 1 -o bar.zip

  Export as YAML with amounts in milliliters:
    bar-pack export 1 -o bar.zip --type yaml --units ml

  Inspect an archive:
    bar-pack inspect bar.zip

  Import recipes and restore images:
    bar-pack import bar.zip --images-dir ./restored

Note: Markdown and JSON-LD archives are one-way and cannot be imported.
""",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    export_parser = subparsers.add_parser("export", help="Export a bar to an archive")
    export_parser.add_argument("bar_id", type=int, help="Bar ID")
    export_parser.add_argument(
        "-o", "--output",
        dest="output_path",
        help="Archive path (default: <exports dir>/<bar id>/<timestamp>_recipes_<type>.zip)",
    )
    export_parser.add_argument(
        "-t", "--type",
        dest="export_type",
        choices=[t.value for t in ExportType],
        default=ExportType.SCHEMA.value,
        help="Recipe format (default: schema)",
    )
    export_parser.add_argument(
        "-u", "--units",
        choices=[u.value for u in ForceUnits],
        default=ForceUnits.ORIGINAL.value,
        help="Convert ingredient amounts to this unit (default: original)",
    )
    export_parser.add_argument(
        "-w", "--workers",
        type=int,
        default=1,
        help="Worker threads for image copy and encoding (default: 1)",
    )

    inspect_parser = subparsers.add_parser("inspect", help="Show an archive's manifest")
    inspect_parser.add_argument("archive", help="Archive path")

    import_parser = subparsers.add_parser("import", help="Decode the recipes of an archive")
    import_parser.add_argument("archive", help="Archive path")
    import_parser.add_argument(
        "--images-dir",
        help="Restore embedded images under this directory, one folder per recipe",
    )

    ingredients_parser = subparsers.add_parser(
        "import-ingredients",
        help="Read ingredients from a CSV file",
    )
    ingredients_parser.add_argument("file", help="CSV file path")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "export":
        return export_cmd(
            args.bar_id, args.output_path, args.export_type, args.units, args.workers
        )
    elif args.command == "inspect":
        return inspect_cmd(args.archive)
    elif args.command == "import":
        return import_cmd(args.archive, args.images_dir)
    elif args.command == "import-ingredients":
        return import_ingredients_cmd(args.file)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
