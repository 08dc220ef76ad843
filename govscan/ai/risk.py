"""EU AI Act risk buckets for detected components."""

from __future__ import annotations

from govscan.models.detection_models import ComponentType, EUAIActRisk

_BY_COMPONENT_TYPE: dict[str, EUAIActRisk] = {
    ComponentType.FRAMEWORK.value: EUAIActRisk.HIGH_RISK,
    ComponentType.LLM_API.value: EUAIActRisk.LIMITED_RISK,
    ComponentType.LLM_LOCAL.value: EUAIActRisk.LIMITED_RISK,
    ComponentType.MLOPS.value: EUAIActRisk.MINIMAL_RISK,
    ComponentType.CONFIG.value: EUAIActRisk.MINIMAL_RISK,
}

# Serialized model weights may back decision-making systems.
HIGH_RISK_MODEL_TYPES = frozenset({
    "Keras/TensorFlow Model",
    "PyTorch Model",
    "ONNX Model",
    "SafeTensors Model",
    "Checkpoint Model",
    "TensorFlow Protobuf",
})


def classify_eu_ai_act_risk(component_type: str) -> str:
    if component_type in _BY_COMPONENT_TYPE:
        return _BY_COMPONENT_TYPE[component_type].value
    if component_type in HIGH_RISK_MODEL_TYPES:
        return EUAIActRisk.HIGH_RISK.value
    return EUAIActRisk.LIMITED_RISK.value
