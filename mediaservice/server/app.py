"""
Flask front end for the media service.
/dl enqueues a download task, /st reports files and their status history.
"""

import logging
import re
from urllib.parse import urlparse

from flask import Flask, Response, jsonify, request

from mediaservice.errors import PipelineClosedError, StorageError, ValidationError
from mediaservice.models import Task

logger = logging.getLogger(__name__)

MD5_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")


def validate_url(url):
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"invalid url {url!r}: {e}") from e
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"url must be absolute, got {url!r}")


def validate_query_params(url, md5):
    """Raises ValidationError unless url is an absolute URI and md5 is 32 hex chars."""
    validate_url(url)
    if not md5 or not MD5_PATTERN.match(md5):
        raise ValidationError("hash invalid. Must be 32 hex characters")


def _bad_request(e):
    msg = f"Bad request: {e}"
    logger.error(msg)
    return jsonify({"error": msg}), 400


def create_app(pipeline, store):
    app = Flask(__name__)

    # ============================================================
    # DOWNLOAD - enqueue a task
    # ============================================================

    @app.route('/dl')
    def download():
        url = request.args.get('url', '')
        md5 = request.args.get('md5', '')

        try:
            validate_query_params(url, md5)
        except ValidationError as e:
            return _bad_request(e)

        try:
            # Blocks while the task channel is full
            pipeline.submit(Task(url=url, hash=md5))
        except PipelineClosedError as e:
            logger.warning(f"Rejected task for {url}: {e}")
            return jsonify({"error": str(e)}), 503

        logger.info(f"Task accepted: url={url!r} md5={md5!r}")
        return jsonify({"status": "accepted"})

    # ============================================================
    # STATISTICS - files with their status log
    # ============================================================

    @app.route('/st')
    def statistic():
        url = request.args.get('url')
        md5 = request.args.get('md5')

        try:
            if url:
                validate_url(url)
                if md5:
                    validate_query_params(url, md5)
        except ValidationError as e:
            return _bad_request(e)

        try:
            if url:
                logger.info(f"Trying to get statistics by url: {url!r}, hash: {md5!r}")
                doc = store.get_statistic_by(url, md5 or None)
            else:
                logger.info("Trying to get full statistics")
                doc = store.get_statistic()
        except StorageError as e:
            msg = f"Ooops: {e}"
            logger.error(msg)
            return jsonify({"error": msg}), 500

        return Response(doc, status=200, mimetype="application/json")

    return app
