from pathlib import Path
import importlib.util
import sys

import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from seamless_terrain.biomes import Biome  # noqa: E402
from seamless_terrain.grid import ChunkCoord, HeightGrid  # noqa: E402


def _load_script():
    path = REPO_ROOT / "scripts" / "check_seams.py"
    spec = importlib.util.spec_from_file_location("check_seams", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_script_reports_a_seamless_region(monkeypatch) -> None:
    monkeypatch.setenv("TERRAIN_VERTICES_PER_SIDE", "9")
    script = _load_script()
    assert script.main(["--radius", "1", "--order-seed", "5", "--seed", "42"]) == 0


def test_seam_mismatches_flags_differing_copies() -> None:
    script = _load_script()
    grids = {
        ChunkCoord(0, 0): HeightGrid(ChunkCoord(0, 0), Biome.PLAINS, np.zeros((3, 3))),
        ChunkCoord(1, 0): HeightGrid(ChunkCoord(1, 0), Biome.PLAINS, np.ones((3, 3))),
    }
    problems = script.seam_mismatches(grids)
    assert any("east edge" in problem for problem in problems)
    assert any("ne corner" in problem for problem in problems)
    assert script.seam_mismatches(grids, tolerance=2.0) == []
