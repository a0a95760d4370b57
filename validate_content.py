import sys
import asyncio
import logging
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from engine.resources import ContentError, ContentKind, ContentLibrary, FileContentProvider
from narrative.validation import validate_dialog_tree
import narrative  # noqa: F401  registers the content models used by ContentLibrary.parse


async def validate(content_path: Path) -> int:
    logger = logging.getLogger("ContentValidation")
    provider = FileContentProvider(content_path)
    library = ContentLibrary(provider)
    failures = 0

    # Tutorials
    logger.info("Loading tutorials...")
    count = await library.load_tutorials()
    for error in library.load_errors:
        logger.error(f"Tutorial {error.content_id}: {error}")
    failures += len(library.load_errors)
    logger.info(f"{count} tutorials loaded.")

    # Dialogs
    for dialog_id in await provider.list_ids(ContentKind.DIALOG):
        try:
            await library.load_dialog(dialog_id)
        except ContentError as e:
            logger.error(str(e))
            failures += 1

    # Dialog trees: schema first, then structure
    for tree_id in await provider.list_ids(ContentKind.DIALOG_TREE):
        try:
            tree = await library.load_dialog_tree(tree_id)
        except ContentError as e:
            logger.error(str(e))
            failures += 1
            continue

        report = validate_dialog_tree(tree)
        for issue in report.errors:
            logger.error(f"Dialog tree {tree_id}: {issue}")
        for issue in report.warnings:
            logger.warning(f"Dialog tree {tree_id}: {issue}")
        if not report.is_valid:
            failures += 1

    return failures


def main():
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger("ContentValidation")

    content_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("content")
    failures = asyncio.run(validate(content_path))

    if failures:
        logger.error(f"VALIDATION FAILED: {failures} problem(s) in {content_path}")
        sys.exit(1)

    logger.info("VALIDATION SUCCESSFUL: All content loaded and validated.")


if __name__ == "__main__":
    main()
