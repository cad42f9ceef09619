# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets: keep the bot token and Matrix password in .env (gitignored).
"""

ENV_VARS = {
    # App / logging
    "CFO_APP_NAME": "App display name, also used as the Matrix device name (default: CFO Workspace).",
    "CFO_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Sync
    "CFO_POLL_INTERVAL_SECONDS": "Background pull period while logged in (default: 4, min 0.5).",
    "CFO_SEED_DEFAULTS": "Seed default users/tables/statuses into an empty database (true/false).",
    # Paths (gitignored)
    "CFO_DATA_DIR": "Local data directory (default: .local/cfo).",
    "CFO_STORAGE_DB_PATH": "Workspace SQLite path (default: <data_dir>/workspace.sqlite3).",
    "CFO_SESSION_PATH": "Session/theme markers JSON (default: <data_dir>/session.json).",
    # Notifications
    "CFO_NOTIFY_CHANNEL": "External channel: none | telegram | matrix (default: none).",
    "CFO_TELEGRAM_BOT_TOKEN": "Telegram bot token (falls back to TELEGRAM_BOT_TOKEN).",
    "CFO_TELEGRAM_CHAT_ID": "Target chat id (falls back to TELEGRAM_CHAT_ID).",
    "CFO_TELEGRAM_API_BASE": "Bot API base URL (default: https://api.telegram.org).",
    "CFO_MATRIX_HOMESERVER": "Matrix homeserver URL (falls back to MATRIX_HOMESERVER).",
    "CFO_MATRIX_USER_ID": "Matrix bot user id (falls back to MATRIX_USER_ID).",
    "CFO_MATRIX_PASSWORD": "Password for the first login; the session is stored locally afterwards.",
    "CFO_MATRIX_ROOM_ID": "Room that receives notifications.",
    "CFO_MATRIX_STORE_PATH": "Matrix session directory (default: <data_dir>/matrix_store).",
}
