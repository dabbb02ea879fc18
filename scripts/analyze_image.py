# scripts/analyze_image.py

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
from typing import List, Optional

import httpx

# --- Add the project root to sys.path when the script is run directly ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# -------------------------------------------------------------------------

from config import Settings
from domain.errors import TrueShadeError
from services.camera import capture_still
from services.catalog import CatalogRepository
from services.classifier import ModelLoaderFactory, ModelProvider
from services.image_utils import file_to_rgb
from services.pipeline import AnalysisPipeline, AnalysisSession

log = logging.getLogger("analyze_image")


def print_result(session: AnalysisSession) -> None:
    result = session.result
    palette = session.palette
    print(f"Skin tone: {palette.title} (class {result.class_id}, p={result.confidence:.2f})")
    print(f"  {palette.description}")
    print(f"  Palette: {' '.join(c.hex for c in palette.target_colors)}")
    if not result.has_matches:
        print("No close matches in the catalog.")
        return
    page = session.current_page()
    print(f"Page {page.number}/{page.total_pages} of {len(result.products)} matches:")
    for sp in page.items:
        p = sp.product
        print(f"  {sp.match_percent:3d}%  {p.brand or '-'} | {p.name} | {sp.best_shade} {sp.best_hex}"
              f" | {p.price_sign or '$'}{p.price or '0.00'}")


async def analyze(args: argparse.Namespace) -> int:
    settings = Settings()
    image = capture_still(settings.camera_index) if args.camera else file_to_rgb(args.image)
    catalog = CatalogRepository(args.catalog or settings.catalog_source).all()
    loader = ModelLoaderFactory.create(settings.model_backend, args.model or settings.model_path)
    pipeline = AnalysisPipeline(ModelProvider(loader), catalog)

    session = AnalysisSession(page_size=settings.page_size)
    await pipeline.analyze(session, image)
    if args.page != 1 and not session.go_to(args.page):
        log.warning("Page %d is out of range, showing page %d", args.page, session.cursor.current)
    print_result(session)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Classify a face photo and list matching products")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("image", nargs="?", help="Path to an image file")
    source.add_argument("--camera", action="store_true", help="Grab a still from the local camera")
    parser.add_argument("--catalog", help="Catalog path or URL (overrides CATALOG_SOURCE)")
    parser.add_argument("--model", help="Model path (overrides MODEL_PATH)")
    parser.add_argument("--page", type=int, default=1, help="Result page to print")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        return asyncio.run(analyze(args))
    except (TrueShadeError, OSError, ValueError, httpx.HTTPError) as exc:
        log.error("%s: %s", type(exc).__name__, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
