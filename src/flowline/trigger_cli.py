"""CLI for firing a published workflow from the command line."""

import argparse
import json
import logging
import sys

from flowline.config import Settings
from flowline.container import build_components, get_redis_client
from flowline.models.graph import TriggerType

logger = logging.getLogger(__name__)


def parse_trigger_data(raw: str | None) -> dict:
    """Parse the ``--data`` argument; it must be a JSON object."""
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Trigger data must be a JSON object")
    return data


def main(argv: list[str] | None = None) -> int:
    """Run one workflow execution and print its instance."""
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Flowline Trigger")
    parser.add_argument(
        "workflow_id",
        help="Workflow ID to execute",
    )
    parser.add_argument(
        "--trigger-type",
        choices=[t.value for t in TriggerType],
        default=TriggerType.CONTACT_FORM.value,
        help="Trigger type recorded on the instance",
    )
    parser.add_argument(
        "--data",
        default=None,
        help="Trigger payload as a JSON object",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        trigger_data = parse_trigger_data(args.data)
    except ValueError as e:
        logger.error(f"Invalid trigger data: {e}")
        return 2

    components = build_components(get_redis_client(settings), settings)

    logger.info(f"Executing workflow {args.workflow_id}")
    result = components.engine.execute_workflow(
        args.workflow_id, args.trigger_type, trigger_data
    )
    if not result.success:
        logger.error(f"Execution failed: {result.error}")
        return 1

    instance = components.ledger.get_instance(result.instance_id)
    print(instance.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
