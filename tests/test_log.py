from loguru import logger

from plansync.core.log import configure_logging
from plansync.core.sync.divergence import has_diverged


PLAN = {"plan": [{"plan_item_id": "A", "text": "x"}]}
EXPERIENCE = {"plan_items": [{"_id": "A", "text": "x"}]}


def test_library_is_silent_until_logging_is_configured():
    seen = []
    logger.disable("plansync")
    sink_id = logger.add(seen.append, level="DEBUG")
    try:
        has_diverged(PLAN, EXPERIENCE)
        assert seen == []
    finally:
        logger.remove(sink_id)

    configure_logging("DEBUG")
    sink_id = logger.add(seen.append, level="DEBUG")
    try:
        has_diverged(PLAN, EXPERIENCE)
        assert len(seen) == 1
    finally:
        logger.remove(sink_id)
        configure_logging("WARNING")
