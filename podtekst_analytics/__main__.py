"""Entry point: analyse the conversation in INPUT_DIR and write OUTPUT_DIR/results.json."""
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from podtekst_analytics.config import settings
from podtekst_analytics.report import AnalysisReportGenerator
from podtekst_analytics.db import db

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def _write_results(payload: Dict[str, Any]) -> Path:
    output_dir_path = Path(settings.OUTPUT_DIR)
    output_dir_path.mkdir(parents=True, exist_ok=True)
    output_file_path = output_dir_path / "results.json"
    with open(output_file_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return output_file_path


def run_analysis() -> None:
    """
    Initializes the database, runs the report generator and writes results.json.
    The session is owned here: committed after a run, rolled back on unhandled errors.
    """
    db_session: Optional[Session] = None

    try:
        db.init()
        db_session = db.get_session()
        logger.info("Database session acquired.")

        logger.info("PodTeksT analytics run starting")
        logger.info("Settings (sensitive fields excluded):")
        logger.info(json.dumps(settings.model_dump(exclude={'DB_PASSWORD', 'DATABASE_URL'}), indent=2))

        result = AnalysisReportGenerator(settings, db_session).generate()
        db_session.commit()
        logger.info("Database session committed.")

        output_file_path = _write_results(result.model_dump())
        logger.info(f"Analysis complete. Results saved to {output_file_path}")
        if result.valid:
            logger.info(f"Badges: {len(result.badges)}, awards: {len(result.awards)}, "
                        f"re-upload: {result.is_reupload}")
        else:
            logger.warning(f"Analysis produced no report. Error: {result.error}")

    except Exception as e:
        logger.critical(f"CRITICAL: Unhandled error during analysis: {str(e)}")
        logger.critical(traceback.format_exc())
        if db_session:
            try:
                db_session.rollback()
                logger.info("Database session rolled back due to critical error.")
            except Exception as rb_err:
                logger.error(f"Error during session rollback: {rb_err}")

        try:
            output_file_path = _write_results({
                "valid": False,
                "error": f"Unhandled Exception: {str(e)}",
                "traceback": traceback.format_exc(),
            })
            logger.info(f"Error results due to unhandled exception saved to {output_file_path}")
        except OSError as write_err:
            logger.error(f"Additionally failed to write error results to output file: {write_err}")
        raise
    finally:
        if db_session:
            db_session.close()
            logger.info("Database session closed.")
        if db.is_initialized:
            db.dispose()
        logger.info("PodTeksT analytics run finished.")


if __name__ == "__main__":
    run_analysis()
