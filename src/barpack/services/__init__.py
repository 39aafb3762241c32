"""Services package - data-pack engine for Bar Pack.

Architecture:
- Services: Stateless functions and small classes organized by concern
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy

Service Modules:
- unit_converter: Amount conversion between unit systems
- external_models: Portable, id-stable records and their mapping
- recipe_encoders: Schema JSON, JSON-LD, Markdown, XML and YAML encoders
- recipe_export_service: Archive builder and bar export
- recipe_import_service: Archive reader and recipe import
- ingredient_import_service: Flat (spreadsheet) ingredient import
- pricing_service: Price per use and shelf checks
"""
