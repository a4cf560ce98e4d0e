"""
Run result and JSON output.

The output file is written once per run and replaced atomically, so a
reader never sees a half-written file.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from movers_bot.config import OUTPUT_FILE
from movers_bot.grid import ReconciledRecord

logger = logging.getLogger('movers_bot.results')


@dataclass
class RunResult:
    """
    Records of one run.

    note is set only when the grid showed no rows at all. Rows that existed
    but were all dropped during reconciliation leave note as None.
    """
    records: List[ReconciledRecord] = field(default_factory=list)
    note: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {'gainers': [record.to_dict() for record in self.records]}
        if self.note is not None:
            data['note'] = self.note
        return data


class ResultSink:
    """Writes RunResults to a fixed JSON path."""

    def __init__(self, path: str = OUTPUT_FILE):
        self.path = path

    def write(self, result: RunResult) -> str:
        """
        Serialize result to self.path, overwriting any previous file.

        Returns:
            The path written
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        temp_file = self.path + '.tmp'
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(result.to_dict(), f, indent=2)
            os.replace(temp_file, self.path)
        except OSError as e:
            logger.error(f"Error writing {self.path}: {e}")
            if os.path.exists(temp_file):
                os.remove(temp_file)
            raise

        logger.info(f"Data saved to {self.path}")
        return self.path
