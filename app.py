"""
Statement upload API.

Accepts a multipart upload, hands the raw bytes to the parsing engine and
relays the ``ParseResult`` as JSON.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Flask, request

from statement_parser.config import ParserConfig
from statement_parser.errors import (
    MalformedTable,
    NoTransactionsExtracted,
    UnsupportedCapability,
    UnsupportedExtension,
)
from statement_parser.pipeline import StatementParser
from statement_parser.schema import FileType, ParseResult

# -------------------------------------------------------
# App Setup
# -------------------------------------------------------

app = Flask(__name__)

app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# -------------------------------------------------------
# Parser Setup
# -------------------------------------------------------

parser = StatementParser(
    config=ParserConfig(
        log_level=logging.WARNING,
        strict_mode=True,
    )
)

# -------------------------------------------------------
# Helpers
# -------------------------------------------------------


def failure(message: str, status: int) -> Tuple[Dict[str, Any], int]:
    return ParseResult.failure(message).to_dict(), status


# -------------------------------------------------------
# API
# -------------------------------------------------------

@app.route("/api/parse-file", methods=["POST"])
def api_parse_file():

    if "file" not in request.files:
        return failure("No file provided", 400)

    file = request.files["file"]

    if not file.filename:
        return failure("No file selected", 400)

    try:
        file_type = FileType.from_filename(file.filename)
    except UnsupportedExtension as e:
        return failure(str(e), 400)

    try:
        result = parser.parse_bytes(file.read(), file.filename, file_type)
        return result.to_dict(), 200

    except UnsupportedCapability as e:
        return failure(str(e), 400)

    except NoTransactionsExtracted as e:
        # The file was readable; it just holds nothing we recognise.
        return failure(str(e), 200)

    except MalformedTable as e:
        logger.warning("Malformed upload %r: %s", file.filename, e)
        return failure(str(e), 500)

    except Exception as e:
        logger.exception("API Error")
        return failure(str(e) or "Failed to parse file", 500)


@app.route("/api/health", methods=["GET"])
def api_health():
    """Health check endpoint."""
    return {
        "status": "online",
        "version": "1.0.0",
        "api": "/api/parse-file",
        "methods": ["POST"],
        "fileTypes": [ft.value for ft in FileType],
    }, 200


if __name__ == "__main__":
    print("=" * 60)
    print("Statement Parser Server Running")
    print("http://localhost:5000")
    print("=" * 60)

    app.run(host="0.0.0.0", port=5000, debug=True)
