import json
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from roadmap_models import RoadmapDocument  # noqa: E402


@pytest.fixture
def roadmap_dict():
    return {
        "title": "Python Basics",
        "description": "Core topics",
        "items": [
            {
                "id": "syntax",
                "title": "Syntax",
                "description": "Indentation, expressions",
                "links": [{"title": "Tutorial", "url": "https://docs.python.org/3/tutorial/"}],
                "status": "completed",
                "userNotes": "done in week 1",
                "dueDate": "2026-01-15",
            },
            {"id": "types", "title": "Types", "status": "in-progress"},
            {"id": "functions", "title": "Functions"},
            {"id": "classes", "title": "Classes", "status": "not-started", "dueDate": None},
        ],
    }


@pytest.fixture
def roadmap_bytes(roadmap_dict):
    return json.dumps(roadmap_dict).encode("utf-8")


@pytest.fixture
def document(roadmap_dict):
    return RoadmapDocument.model_validate(roadmap_dict)


@pytest.fixture
def sample_path():
    return ROOT / "sample_inputs" / "react-roadmap.json"
