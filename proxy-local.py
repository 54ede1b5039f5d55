#!/usr/bin/env python3

import argparse
import base64
import logging
import os
import proxy
import threading

from http.server import BaseHTTPRequestHandler
from http.server import ThreadingHTTPServer
from urllib.parse import parse_qs
from urllib.parse import urlsplit

MAX_INSTANCES = int(os.environ.get("MAX_INSTANCES", 10))

logger = logging.getLogger("proxy-local")

class Handler(BaseHTTPRequestHandler):

    slots = threading.BoundedSemaphore(MAX_INSTANCES)

    def event(self):
        query = urlsplit(self.path).query
        params = {k: v[0] for k, v in parse_qs(query).items()}
        return {
            "httpMethod": self.command,
            "path": urlsplit(self.path).path,
            "queryStringParameters": params or None,
            "headers": dict(self.headers.items()),
        }

    def relay(self):
        with self.slots:
            result = proxy.lambda_handler(self.event(), None)
        body = result.get("body") or ""
        body = base64.b64decode(body) if result.get("isBase64Encoded") else body.encode()
        self.send_response(result["statusCode"])
        for name, value in result.get("headers", {}).items():
            self.send_header(name, value)
        if result["statusCode"] != 204:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD" and result["statusCode"] != 204:
            self.wfile.write(body)

    do_GET = do_HEAD = do_POST = do_PUT = do_PATCH = do_DELETE = do_OPTIONS = relay

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)

def serve(host, port, max_instances=MAX_INSTANCES):
    Handler.slots = threading.BoundedSemaphore(max_instances)
    server = ThreadingHTTPServer((host, port), Handler)
    logger.info("Starting proxy at http://%s:%d/ (max %d instances)", host, server.server_port, max_instances)
    return server

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the download proxy locally.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8001)
    parser.add_argument("--max-instances", type=int, default=MAX_INSTANCES)
    args = parser.parse_args()
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper(),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    serve(args.host, args.port, args.max_instances).serve_forever()
