from __future__ import annotations

from typing import Optional

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging, level_from_name
from app.services import build_components
from app.services.reprocess_service import ReprocessJob


def run_reprocess(settings: Optional[Settings] = None) -> int:
    """Backfill every stored record against the configured data and upload directories."""

    settings = settings or get_settings()
    components = build_components(settings)
    job = ReprocessJob(
        settings,
        components.storage,
        components.store,
        components.prober,
        components.thumbnailer,
    )
    return job.run()


def main() -> None:
    """Entry-point for ``clipjury-reprocess``; takes no arguments."""

    settings = get_settings()
    configure_logging(level=level_from_name(settings.log_level))
    updated = run_reprocess(settings)
    print(f"Reprocessing complete. Records updated: {updated}")


__all__ = ["run_reprocess", "main"]


if __name__ == "__main__":
    main()
