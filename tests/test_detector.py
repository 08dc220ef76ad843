"""
Tests for the four-phase AI/ML detector.
"""

from govscan.ai.detector import AIDetector, extract_version
from govscan.scanner.files import FileDiscovery
from tests.helpers import write_tree


class DictSource:
    def __init__(self, files):
        self.files = files

    def list_files(self):
        return list(self.files)

    def read_file(self, rel_path):
        return self.files[rel_path]


def test_dependency_phase_wins_over_code_pattern(ml_project):
    detections = AIDetector().scan(FileDiscovery(ml_project))
    pytorch = [d for d in detections if d.name == "PyTorch"]
    assert len(pytorch) == 1
    assert pytorch[0].detection_method == "dependency"
    assert pytorch[0].confidence == 0.95
    assert pytorch[0].version == "2.1.0"
    assert pytorch[0].file_path == "requirements.txt"
    assert pytorch[0].eu_ai_act_risk == "HIGH-RISK"


def test_model_file_detected_by_extension(ml_project):
    detections = AIDetector().scan(FileDiscovery(ml_project))
    models = [d for d in detections if d.detection_method == "file_extension"]
    assert len(models) == 1
    assert models[0].name == "classifier"
    assert models[0].type == "PyTorch Model"
    assert models[0].confidence == 0.9
    assert models[0].status == "REVIEW_REQUIRED"
    assert models[0].eu_ai_act_risk == "HIGH-RISK"


def test_config_file_detected():
    source = DictSource({"training/Model_Config.json": "{}"})
    detections = AIDetector().scan(source)
    assert len(detections) == 1
    assert detections[0].type == "CONFIG"
    assert detections[0].confidence == 0.8
    assert detections[0].eu_ai_act_risk == "MINIMAL-RISK"


def test_code_pattern_phase_when_no_manifest():
    source = DictSource({"app.py": "from openai import OpenAI\nclient = OpenAI()\n"})
    detections = AIDetector().scan(source)
    assert [d.name for d in detections] == ["OpenAI"]
    assert detections[0].detection_method == "code_pattern"
    assert detections[0].confidence == 0.85
    assert detections[0].eu_ai_act_risk == "LIMITED-RISK"


def test_code_pattern_phase_limited_to_first_files():
    files = {f"src/m{i:02d}.py": "x = 1\n" for i in range(5)}
    files["src/z_last.py"] = "import torch\n"
    detections = AIDetector(code_file_limit=5).scan(DictSource(files))
    assert detections == []


def test_extension_detections_not_deduplicated_against_frameworks():
    source = DictSource({
        "requirements.txt": "torch==2.0\n",
        "weights.pth": "",
        "train.py": "import torch\n",
    })
    detections = AIDetector().scan(source)
    assert sorted(d.detection_method for d in detections) == ["dependency", "file_extension"]


def test_malformed_signature_pattern_skipped():
    from govscan.models.detection_models import ComponentType, FrameworkSignature, RiskLevel

    signatures = {
        "broken": FrameworkSignature(
            "broken", "Broken", ("([",), (), ComponentType.FRAMEWORK, RiskLevel.LOW
        ),
        "ok": FrameworkSignature(
            "ok", "Fine", (r"import fine",), (), ComponentType.MLOPS, RiskLevel.LOW
        ),
    }
    detections = AIDetector(signatures=signatures).scan(DictSource({"a.py": "import fine\n"}))
    assert [d.name for d in detections] == ["Fine"]


def test_extract_version_strategies():
    assert extract_version("torch>=2.1.0\n", "torch") == "2.1.0"
    assert extract_version('{"openai": "^4.20.1"}', "openai") == "4.20.1"
    assert extract_version("torch\n", "torch") is None


def test_skip_listed_directories_ignored(tmp_path):
    root = write_tree(tmp_path, {"node_modules/pkg/model.onnx": "x", "app.js": "1"})
    assert AIDetector().scan(FileDiscovery(root)) == []
