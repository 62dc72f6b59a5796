"""JSON HTTP API for creating, inspecting and stopping crawl jobs."""

from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from sitecrawl.jobs.runner import JobRunner
from sitecrawl.jobs.store import CrawlRequest, JobNotFoundError
from sitecrawl.models.config import CrawlerConfig
from sitecrawl.url_utils import InvalidURLError

logger = logging.getLogger(__name__)


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "request"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def create_app(config: CrawlerConfig, runner: JobRunner) -> Flask:
    """Build the Flask app around an already constructed runner and its store."""
    app = Flask(__name__)
    # Dashboards served from other origins poll the job endpoints
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    store = runner.store

    @app.errorhandler(JobNotFoundError)
    def job_not_found(_error):
        return jsonify({"error": "Job not found"}), 404

    @app.post("/api/crawl")
    def start_crawl():
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            crawl_request = CrawlRequest.from_payload(payload, config.crawl)
            job = runner.create_job(crawl_request)
        except ValidationError as e:
            return jsonify({"error": _validation_message(e)}), 400
        except InvalidURLError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({"jobId": job.id, "status": "started"})

    @app.get("/api/status/<job_id>")
    def job_status(job_id: str):
        return jsonify(store.status(job_id))

    @app.get("/api/results/<job_id>")
    def job_results(job_id: str):
        return jsonify(store.results(job_id))

    @app.post("/api/stop/<job_id>")
    def stop_job(job_id: str):
        job = runner.stop_job(job_id)
        return jsonify({"status": job.status.value})

    @app.get("/api/jobs")
    def list_jobs():
        return jsonify([job.status_snapshot() for job in store.list_jobs()])

    return app
