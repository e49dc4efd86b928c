from __future__ import annotations

# GH metadata operations (view, edit, delete-asset)
GH_TIMEOUT_SECONDS = 60.0

# Asset uploads and release creation carry the archives themselves
GH_UPLOAD_TIMEOUT_SECONDS = 30 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
