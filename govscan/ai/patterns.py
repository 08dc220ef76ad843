"""
AI/ML Signature Registry — the static table the detector matches against.

Built once at import and exposed read-only.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from govscan.models.detection_models import (
    ComponentType,
    FrameworkSignature,
    ModelFileExtension,
    RiskLevel,
)

_F = ComponentType.FRAMEWORK
_API = ComponentType.LLM_API
_LOCAL = ComponentType.LLM_LOCAL
_OPS = ComponentType.MLOPS

_H = RiskLevel.HIGH
_M = RiskLevel.MEDIUM
_L = RiskLevel.LOW

_SIGNATURES: tuple[FrameworkSignature, ...] = (
    FrameworkSignature("tensorflow", "TensorFlow",
                       (r"import tensorflow", r"from tensorflow", r"tf\.keras"),
                       ("tensorflow", "tensorflow-gpu", "tf-nightly"), _F, _H),
    FrameworkSignature("pytorch", "PyTorch",
                       (r"import torch", r"from torch", r"torch\.nn"),
                       ("torch", "torchvision", "pytorch"), _F, _H),
    FrameworkSignature("scikit-learn", "scikit-learn",
                       (r"from sklearn", r"import sklearn"),
                       ("scikit-learn", "sklearn"), _F, _M),
    FrameworkSignature("huggingface", "HuggingFace",
                       (r"from transformers", r"import transformers", r"AutoModel", r"AutoTokenizer"),
                       ("transformers", "huggingface-hub", "datasets"), _F, _H),
    FrameworkSignature("langchain", "LangChain",
                       (r"from langchain", r"import langchain"),
                       ("langchain", "langchain-core", "langchain-openai",
                        "langchain-anthropic", "langchain-google"), _F, _H),
    # Hosted LLM APIs
    FrameworkSignature("openai", "OpenAI",
                       (r"import openai", r"from openai", r"openai\.", r"OpenAI\(",
                        r"ChatCompletion", r"OPENAI_API_KEY"),
                       ("openai",), _API, _H),
    FrameworkSignature("anthropic", "Anthropic",
                       (r"import anthropic", r"from anthropic", r"anthropic\.", r"Anthropic\(",
                        r"ANTHROPIC_API_KEY", r"claude"),
                       ("anthropic",), _API, _H),
    FrameworkSignature("azure-openai", "Azure OpenAI",
                       (r"AzureOpenAI", r"azure\.ai\.openai", r"AZURE_OPENAI", r"openai\.api_type.*azure"),
                       ("openai", "azure-ai-openai"), _API, _H),
    FrameworkSignature("google-vertex-ai", "Google Vertex AI",
                       (r"vertexai", r"google\.cloud\.aiplatform", r"from google\.generativeai",
                        r"import google\.generativeai", r"GOOGLE_API_KEY"),
                       ("google-cloud-aiplatform", "vertexai", "google-generativeai"), _API, _H),
    FrameworkSignature("aws-bedrock", "AWS Bedrock",
                       (r"bedrock", r"boto3.*bedrock", r"invoke_model", r"AWS_BEDROCK"),
                       ("boto3", "botocore"), _API, _H),
    FrameworkSignature("cohere", "Cohere",
                       (r"import cohere", r"from cohere", r"cohere\.", r"Cohere\(", r"COHERE_API_KEY"),
                       ("cohere",), _API, _H),
    FrameworkSignature("ai21", "AI21 Labs",
                       (r"import ai21", r"from ai21", r"ai21\.", r"AI21_API_KEY"),
                       ("ai21",), _API, _H),
    FrameworkSignature("mistral", "Mistral AI",
                       (r"import mistralai", r"from mistralai", r"MistralClient", r"MISTRAL_API_KEY"),
                       ("mistralai",), _API, _H),
    FrameworkSignature("replicate", "Replicate",
                       (r"import replicate", r"from replicate", r"replicate\.", r"REPLICATE_API_TOKEN"),
                       ("replicate",), _API, _H),
    FrameworkSignature("together-ai", "Together AI",
                       (r"import together", r"from together", r"together\.", r"TOGETHER_API_KEY"),
                       ("together",), _API, _H),
    FrameworkSignature("groq", "Groq",
                       (r"import groq", r"from groq", r"Groq\(", r"GROQ_API_KEY"),
                       ("groq",), _API, _H),
    # Local inference
    FrameworkSignature("ollama", "Ollama",
                       (r"import ollama", r"from ollama", r"ollama\.", r"OLLAMA"),
                       ("ollama",), _LOCAL, _M),
    FrameworkSignature("llama-cpp", "llama.cpp",
                       (r"llama_cpp", r"from llama_cpp", r"LlamaCpp"),
                       ("llama-cpp-python",), _LOCAL, _M),
    FrameworkSignature("keras", "Keras",
                       (r"import keras", r"from keras"),
                       ("keras",), _F, _H),
    FrameworkSignature("xgboost", "XGBoost",
                       (r"import xgboost", r"from xgboost"),
                       ("xgboost",), _F, _M),
    FrameworkSignature("lightgbm", "LightGBM",
                       (r"import lightgbm", r"from lightgbm"),
                       ("lightgbm",), _F, _M),
    FrameworkSignature("mlflow", "MLflow",
                       (r"import mlflow", r"from mlflow"),
                       ("mlflow",), _OPS, _L),
    FrameworkSignature("llamaindex", "LlamaIndex",
                       (r"from llama_index", r"import llama_index", r"LlamaIndex"),
                       ("llama-index", "llama_index"), _F, _H),
    FrameworkSignature("semantic-kernel", "Semantic Kernel",
                       (r"semantic_kernel", r"from semantic_kernel"),
                       ("semantic-kernel",), _F, _H),
    FrameworkSignature("autogen", "AutoGen",
                       (r"import autogen", r"from autogen", r"pyautogen"),
                       ("pyautogen", "autogen"), _F, _H),
    FrameworkSignature("crewai", "CrewAI",
                       (r"import crewai", r"from crewai", r"CrewAI"),
                       ("crewai",), _F, _H),
)

FRAMEWORK_SIGNATURES: Mapping[str, FrameworkSignature] = MappingProxyType(
    {sig.key: sig for sig in _SIGNATURES}
)

MODEL_FILE_EXTENSIONS: tuple[ModelFileExtension, ...] = (
    ModelFileExtension(".h5", "Keras/TensorFlow Model", _H),
    ModelFileExtension(".hdf5", "HDF5 Model", _H),
    ModelFileExtension(".pt", "PyTorch Model", _H),
    ModelFileExtension(".pth", "PyTorch Model", _H),
    ModelFileExtension(".onnx", "ONNX Model", _H),
    ModelFileExtension(".pkl", "Pickled Model", _M),
    ModelFileExtension(".joblib", "Joblib Model", _M),
    ModelFileExtension(".safetensors", "SafeTensors Model", _H),
    ModelFileExtension(".bin", "Binary Model (potential)", _M),
    ModelFileExtension(".ckpt", "Checkpoint Model", _H),
    ModelFileExtension(".pb", "TensorFlow Protobuf", _H),
)

AI_CONFIG_FILES: frozenset[str] = frozenset({
    "model_config.json",
    "config.json",
    "hyperparams.yaml",
    "hyperparameters.json",
    "training_config.yaml",
    "model.yaml",
    ".mlflow",
    "mlproject",
    "dvc.yaml",
})

DEPENDENCY_FILES: frozenset[str] = frozenset({
    "requirements.txt",
    "setup.py",
    "pyproject.toml",
    "package.json",
    "go.mod",
    ".env",
    ".env.example",
})

CODE_EXTENSIONS: frozenset[str] = frozenset({".py", ".js", ".ts", ".go", ".java", ".rs"})
