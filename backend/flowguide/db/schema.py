"""Database schema DDL. All tables use CREATE IF NOT EXISTS for idempotency."""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS guides (
    guide_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS flow_boxes (
    flow_box_id TEXT PRIMARY KEY,
    guide_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    position INTEGER NOT NULL,
    is_visible INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    FOREIGN KEY (guide_id) REFERENCES guides(guide_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_flow_boxes_guide_id ON flow_boxes(guide_id);

CREATE TABLE IF NOT EXISTS steps (
    step_id TEXT PRIMARY KEY,
    flow_box_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    position INTEGER NOT NULL,
    is_visible INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    FOREIGN KEY (flow_box_id) REFERENCES flow_boxes(flow_box_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_steps_flow_box_id ON steps(flow_box_id);
"""
