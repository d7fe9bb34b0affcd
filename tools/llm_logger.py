import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "data/Log/llm_log.json"


class LLMLogger:
    """Appends every language-model call to a JSON array on disk."""

    def __init__(self, log_file: str = DEFAULT_LOG_FILE):
        self._lock = threading.Lock()
        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.log_file.exists():
            self.log_file.write_text("[]", encoding="utf-8")

    def log_llm_call(
        self,
        prompt: str,
        response: Any,
        model: str,
        module: str,
        metadata: Optional[Dict] = None,
    ):
        """Log LLM call with full details"""
        try:
            log_entry = {
                "timestamp": datetime.now().isoformat(),
                "module": module,
                "metadata": metadata or {},
                "request": {
                    "model": model,
                    "messages": [{"role": "user", "content": prompt}],
                },
                "response": self._extract_response_data(response),
            }

            with self._lock:
                logs = self.read_logs()
                logs.append(log_entry)
                self._write_logs(logs)

        except Exception as e:
            logger.warning("Failed to log LLM call: %s", e)

    def _extract_response_data(self, response: Any) -> Dict:
        """Extract response data in the format similar to API response"""
        if response is None:
            return {"error": "no response"}
        if isinstance(response, BaseException):
            return {"error": f"{type(response).__name__}: {response}"}

        metadata = getattr(response, "response_metadata", None) or {}
        token_usage = metadata.get("token_usage", {}) or {}
        return {
            "id": metadata.get("id", ""),
            "object": metadata.get("object", "chat.completion"),
            "created": metadata.get("created", int(datetime.now().timestamp())),
            "model": metadata.get("model_name", metadata.get("model", "")),
            "choices": [
                {
                    "index": 0,
                    "message": {
                        "role": "assistant",
                        "content": getattr(response, "content", str(response)),
                    },
                    "finish_reason": metadata.get("finish_reason", "stop"),
                }
            ],
            "usage": {
                "prompt_tokens": token_usage.get("prompt_tokens", 0),
                "completion_tokens": token_usage.get("completion_tokens", 0),
                "total_tokens": token_usage.get("total_tokens", 0),
            },
        }

    def read_logs(self) -> List[Dict]:
        """Read existing logs"""
        try:
            with open(self.log_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            logger.error("Failed to parse %s", self.log_file)
            return []

    def _write_logs(self, logs: List[Dict]):
        """Write logs to file"""
        with open(self.log_file, "w", encoding="utf-8") as f:
            json.dump(logs, f, indent=2, ensure_ascii=False)


_instances: Dict[str, LLMLogger] = {}
_instances_lock = threading.Lock()


def get_llm_logger(log_file: str = DEFAULT_LOG_FILE) -> LLMLogger:
    """Get the shared LLMLogger for ``log_file``"""
    key = str(Path(log_file).resolve())
    with _instances_lock:
        if key not in _instances:
            _instances[key] = LLMLogger(log_file)
        return _instances[key]
