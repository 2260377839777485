from __future__ import annotations

from flask import Flask, jsonify

from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sync/run", methods=["POST"], endpoint="api_sync_run")
    def api_sync_run():
        summary = container.sync_scheduler.run_once()
        if summary.skipped:
            return jsonify({"success": False, "message": "Sync already running"}), 409

        return jsonify(
            {
                "success": True,
                "started_at": summary.started_at.isoformat(),
                "finished_at": summary.finished_at.isoformat() if summary.finished_at else None,
                "facilities": [
                    {
                        "facility_id": r.facility_id,
                        "name": r.facility_name,
                        "status": r.status.value,
                        "fetched": r.fetched,
                        "applied": r.applied,
                        "duplicates": r.duplicates,
                        "dropped": r.dropped,
                        "unresolved": r.unresolved,
                        "rejected": r.rejected,
                        "conflicts": r.conflicts,
                        "error": r.error,
                    }
                    for r in summary.results
                ],
            }
        ), 200
