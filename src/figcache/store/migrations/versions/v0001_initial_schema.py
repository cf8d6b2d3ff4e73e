"""Initial index schema.

Creates the core tables of a per-document index:
- pages: Top-level pages with derived counts
- nodes: Document tree elements with materialized paths
- components: Reusable component library
- variable_collections / variables: Design tokens and their modes
- sync_meta: Key/value sync bookkeeping
- nodes_fts, components_fts, variables_fts: External-content FTS5 indexes
  kept current by insert/delete/update triggers
"""

VERSION = 1
DESCRIPTION = "Initial schema with nodes, components, pages and variables"


def up(conn):
    """Apply initial schema migration."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS pages (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            node_count INTEGER DEFAULT 0,
            component_count INTEGER DEFAULT 0,
            frame_count INTEGER DEFAULT 0,
            summary TEXT,
            main_sections TEXT,
            last_synced TEXT
        );

        CREATE TABLE IF NOT EXISTS nodes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            figma_id TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            parent_id TEXT,
            page_id TEXT NOT NULL REFERENCES pages(id),
            path TEXT,
            depth INTEGER DEFAULT 0,
            component_key TEXT,
            component_name TEXT,
            daisyui_class TEXT,
            daisyui_component TEXT,
            daisyui_variant TEXT,
            daisyui_size TEXT,
            tailwind_classes TEXT,
            data_testid TEXT,
            x REAL,
            y REAL,
            width REAL,
            height REAL,
            content_hash TEXT,
            last_synced TEXT
        );

        CREATE TABLE IF NOT EXISTS components (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            key TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            category TEXT NOT NULL,
            subcategory TEXT,
            figma_id TEXT,
            daisyui_class TEXT,
            tailwind_base TEXT,
            variants TEXT,
            description TEXT,
            usage_hint TEXT,
            usage_count INTEGER DEFAULT 0,
            last_used TEXT,
            last_synced TEXT
        );

        CREATE TABLE IF NOT EXISTS variable_collections (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            modes TEXT,
            default_mode_id TEXT,
            variable_count INTEGER DEFAULT 0,
            last_synced TEXT
        );

        CREATE TABLE IF NOT EXISTS variables (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            collection_id TEXT NOT NULL REFERENCES variable_collections(id),
            resolved_type TEXT NOT NULL,
            daisyui_name TEXT,
            daisyui_category TEXT,
            values_by_mode TEXT,
            hex TEXT,
            rgb TEXT,
            description TEXT,
            scopes TEXT,
            last_synced TEXT
        );

        CREATE TABLE IF NOT EXISTS sync_meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS nodes_fts USING fts5(
            name, path, daisyui_class, daisyui_component, data_testid,
            content=nodes, content_rowid=id
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS components_fts USING fts5(
            name, category, subcategory, daisyui_class, description, usage_hint,
            content=components, content_rowid=id
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS variables_fts USING fts5(
            name, daisyui_name, daisyui_category, description,
            content=variables
        );

        CREATE INDEX IF NOT EXISTS idx_nodes_type ON nodes(type);
        CREATE INDEX IF NOT EXISTS idx_nodes_page ON nodes(page_id);
        CREATE INDEX IF NOT EXISTS idx_nodes_daisyui ON nodes(daisyui_class);
        CREATE INDEX IF NOT EXISTS idx_nodes_daisyui_component ON nodes(daisyui_component);
        CREATE INDEX IF NOT EXISTS idx_nodes_component_key ON nodes(component_key);
        CREATE INDEX IF NOT EXISTS idx_nodes_path ON nodes(path);
        CREATE INDEX IF NOT EXISTS idx_components_category ON components(category);
        CREATE INDEX IF NOT EXISTS idx_components_daisyui ON components(daisyui_class);
        CREATE INDEX IF NOT EXISTS idx_variables_collection ON variables(collection_id);
        CREATE INDEX IF NOT EXISTS idx_variables_type ON variables(resolved_type);
        CREATE INDEX IF NOT EXISTS idx_variables_daisyui ON variables(daisyui_name);
        CREATE INDEX IF NOT EXISTS idx_variables_name ON variables(name);

        CREATE TRIGGER IF NOT EXISTS nodes_ai AFTER INSERT ON nodes BEGIN
            INSERT INTO nodes_fts(rowid, name, path, daisyui_class, daisyui_component, data_testid)
            VALUES (new.id, new.name, new.path, new.daisyui_class, new.daisyui_component, new.data_testid);
        END;

        CREATE TRIGGER IF NOT EXISTS nodes_ad AFTER DELETE ON nodes BEGIN
            INSERT INTO nodes_fts(nodes_fts, rowid, name, path, daisyui_class, daisyui_component, data_testid)
            VALUES ('delete', old.id, old.name, old.path, old.daisyui_class, old.daisyui_component, old.data_testid);
        END;

        CREATE TRIGGER IF NOT EXISTS nodes_au AFTER UPDATE ON nodes BEGIN
            INSERT INTO nodes_fts(nodes_fts, rowid, name, path, daisyui_class, daisyui_component, data_testid)
            VALUES ('delete', old.id, old.name, old.path, old.daisyui_class, old.daisyui_component, old.data_testid);
            INSERT INTO nodes_fts(rowid, name, path, daisyui_class, daisyui_component, data_testid)
            VALUES (new.id, new.name, new.path, new.daisyui_class, new.daisyui_component, new.data_testid);
        END;

        CREATE TRIGGER IF NOT EXISTS components_ai AFTER INSERT ON components BEGIN
            INSERT INTO components_fts(rowid, name, category, subcategory, daisyui_class, description, usage_hint)
            VALUES (new.id, new.name, new.category, new.subcategory, new.daisyui_class, new.description, new.usage_hint);
        END;

        CREATE TRIGGER IF NOT EXISTS components_ad AFTER DELETE ON components BEGIN
            INSERT INTO components_fts(components_fts, rowid, name, category, subcategory, daisyui_class, description, usage_hint)
            VALUES ('delete', old.id, old.name, old.category, old.subcategory, old.daisyui_class, old.description, old.usage_hint);
        END;

        CREATE TRIGGER IF NOT EXISTS components_au AFTER UPDATE ON components BEGIN
            INSERT INTO components_fts(components_fts, rowid, name, category, subcategory, daisyui_class, description, usage_hint)
            VALUES ('delete', old.id, old.name, old.category, old.subcategory, old.daisyui_class, old.description, old.usage_hint);
            INSERT INTO components_fts(rowid, name, category, subcategory, daisyui_class, description, usage_hint)
            VALUES (new.id, new.name, new.category, new.subcategory, new.daisyui_class, new.description, new.usage_hint);
        END;

        CREATE TRIGGER IF NOT EXISTS variables_ai AFTER INSERT ON variables BEGIN
            INSERT INTO variables_fts(rowid, name, daisyui_name, daisyui_category, description)
            VALUES (new.rowid, new.name, new.daisyui_name, new.daisyui_category, new.description);
        END;

        CREATE TRIGGER IF NOT EXISTS variables_ad AFTER DELETE ON variables BEGIN
            INSERT INTO variables_fts(variables_fts, rowid, name, daisyui_name, daisyui_category, description)
            VALUES ('delete', old.rowid, old.name, old.daisyui_name, old.daisyui_category, old.description);
        END;

        CREATE TRIGGER IF NOT EXISTS variables_au AFTER UPDATE ON variables BEGIN
            INSERT INTO variables_fts(variables_fts, rowid, name, daisyui_name, daisyui_category, description)
            VALUES ('delete', old.rowid, old.name, old.daisyui_name, old.daisyui_category, old.description);
            INSERT INTO variables_fts(rowid, name, daisyui_name, daisyui_category, description)
            VALUES (new.rowid, new.name, new.daisyui_name, new.daisyui_category, new.description);
        END;

        INSERT OR IGNORE INTO sync_meta (key, value) VALUES ('created_at', datetime('now'));
        """
    )
