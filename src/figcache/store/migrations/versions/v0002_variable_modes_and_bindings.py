"""Variable classification, per-mode values and node bindings.

Adds:
- Classification and color columns on variables
- variable_mode_values: one row per (variable, mode)
- variable_bindings: node property slots bound to a variable
- variables_fts rebuilt to cover the classification columns

Columns are added only when missing so the migration can be re-applied
against an already-upgraded database.
"""

VERSION = 2
DESCRIPTION = "Variable classification, mode values and bindings"

VARIABLE_COLUMNS = [
    ("hsl", "TEXT"),
    ("token_type", "TEXT"),
    ("color_system", "TEXT"),
    ("semantic_role", "TEXT"),
    ("tailwind_name", "TEXT"),
    ("tailwind_shade", "TEXT"),
    ("tailwind_class", "TEXT"),
    ("css_variable", "TEXT"),
    ("is_alias", "INTEGER DEFAULT 0"),
    ("alias_target_id", "TEXT"),
]


def _existing_columns(conn, table: str) -> set[str]:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def up(conn):
    """Apply variable modes and bindings migration."""
    existing = _existing_columns(conn, "variables")
    for column, declaration in VARIABLE_COLUMNS:
        if column not in existing:
            conn.execute(f"ALTER TABLE variables ADD COLUMN {column} {declaration}")

    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS variable_mode_values (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            variable_id TEXT NOT NULL REFERENCES variables(id) ON DELETE CASCADE,
            mode_id TEXT NOT NULL,
            mode_name TEXT,
            raw_value TEXT,
            hex TEXT,
            rgb TEXT,
            hsl TEXT,
            float_value REAL,
            string_value TEXT,
            boolean_value INTEGER,
            is_alias INTEGER DEFAULT 0,
            alias_variable_id TEXT,
            UNIQUE(variable_id, mode_id)
        );

        CREATE TABLE IF NOT EXISTS variable_bindings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            node_id TEXT NOT NULL REFERENCES nodes(figma_id) ON DELETE CASCADE,
            variable_id TEXT NOT NULL REFERENCES variables(id) ON DELETE CASCADE,
            property TEXT NOT NULL,
            property_index INTEGER NOT NULL DEFAULT 0,
            field TEXT NOT NULL DEFAULT '',
            last_synced TEXT,
            UNIQUE(node_id, property, property_index, field)
        );

        CREATE INDEX IF NOT EXISTS idx_mode_values_variable ON variable_mode_values(variable_id);
        CREATE INDEX IF NOT EXISTS idx_bindings_node ON variable_bindings(node_id);
        CREATE INDEX IF NOT EXISTS idx_bindings_variable ON variable_bindings(variable_id);
        CREATE INDEX IF NOT EXISTS idx_variables_token_type ON variables(token_type);

        DROP TRIGGER IF EXISTS variables_ai;
        DROP TRIGGER IF EXISTS variables_ad;
        DROP TRIGGER IF EXISTS variables_au;
        DROP TABLE IF EXISTS variables_fts;

        CREATE VIRTUAL TABLE variables_fts USING fts5(
            name, daisyui_name, daisyui_category, tailwind_name, token_type,
            semantic_role, description,
            content=variables
        );

        CREATE TRIGGER variables_ai AFTER INSERT ON variables BEGIN
            INSERT INTO variables_fts(rowid, name, daisyui_name, daisyui_category, tailwind_name, token_type, semantic_role, description)
            VALUES (new.rowid, new.name, new.daisyui_name, new.daisyui_category, new.tailwind_name, new.token_type, new.semantic_role, new.description);
        END;

        CREATE TRIGGER variables_ad AFTER DELETE ON variables BEGIN
            INSERT INTO variables_fts(variables_fts, rowid, name, daisyui_name, daisyui_category, tailwind_name, token_type, semantic_role, description)
            VALUES ('delete', old.rowid, old.name, old.daisyui_name, old.daisyui_category, old.tailwind_name, old.token_type, old.semantic_role, old.description);
        END;

        CREATE TRIGGER variables_au AFTER UPDATE ON variables BEGIN
            INSERT INTO variables_fts(variables_fts, rowid, name, daisyui_name, daisyui_category, tailwind_name, token_type, semantic_role, description)
            VALUES ('delete', old.rowid, old.name, old.daisyui_name, old.daisyui_category, old.tailwind_name, old.token_type, old.semantic_role, old.description);
            INSERT INTO variables_fts(rowid, name, daisyui_name, daisyui_category, tailwind_name, token_type, semantic_role, description)
            VALUES (new.rowid, new.name, new.daisyui_name, new.daisyui_category, new.tailwind_name, new.token_type, new.semantic_role, new.description);
        END;

        INSERT INTO variables_fts(variables_fts) VALUES ('rebuild');
        """
    )
