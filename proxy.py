#!/usr/bin/env python3

import base64
import logging
import os
import requests
import sys

DRIVE_URL = "https://drive.google.com/uc?id={}&export=download"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
PREFLIGHT_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"
TIMEOUT = float(os.environ["DOWNLOAD_TIMEOUT"]) if os.environ.get("DOWNLOAD_TIMEOUT") else None

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

def drive_url(file_id):
    return DRIVE_URL.format(file_id)

def download(file_id):
    response = requests.get(drive_url(file_id), timeout=TIMEOUT)
    if not 200 <= response.status_code < 300:
        raise requests.HTTPError(f"Failed with status {response.status_code}", response=response)
    content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
    return response.content, content_type

def headers_of(event):
    return {k.lower(): v for k, v in (event.get("headers") or {}).items()}

def method_of(event):
    # REST API (v1) and HTTP API (v2) payloads keep the method in different places.
    method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method")
    return (method or "GET").upper()

def cors_headers(event):
    origin = headers_of(event).get("origin")
    if not origin:
        return {"Access-Control-Allow-Origin": "*"}
    return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}

def preflight(event):
    headers = cors_headers(event)
    headers["Access-Control-Allow-Methods"] = PREFLIGHT_METHODS
    if requested := headers_of(event).get("access-control-request-headers"):
        headers["Access-Control-Allow-Headers"] = requested
        headers["Vary"] = ", ".join(filter(None, [headers.get("Vary"), "Access-Control-Request-Headers"]))
    return {"statusCode": 204, "headers": headers, "body": "", "isBase64Encoded": False}

def response(status_code, body, headers=None):
    headers = dict(headers or {})
    if isinstance(body, bytes):
        return {
            "statusCode": status_code,
            "headers": headers,
            "body": base64.b64encode(body).decode("ascii"),
            "isBase64Encoded": True,
        }
    headers.setdefault("Content-Type", "text/plain")
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": body,
        "isBase64Encoded": False,
    }

def lambda_handler(event, context):
    if method_of(event) == "OPTIONS":
        return preflight(event)
    cors = cors_headers(event)
    params = event.get("queryStringParameters") or {}
    if not (file_id := params.get("fileId")):
        return response(400, "Missing fileId", cors)
    try:
        body, content_type = download(file_id)
        return response(200, body, {**cors, "Content-Type": content_type})
    except Exception:
        logger.exception("Download error for fileId=%s", file_id)
        return response(500, "Failed to download file", cors)

if __name__ == "__main__":
    logging.basicConfig()
    body, content_type = download(sys.argv[1])
    print(content_type, file=sys.stderr)
    sys.stdout.buffer.write(body)
