import os
import tempfile

# 必须在导入 aura_core 之前设置：settings 与 logger 在导入时初始化
_TMP = tempfile.mkdtemp(prefix="aura-tests-")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP, "logs"))
os.environ.setdefault("STORAGE_ROOT", os.path.join(_TMP, ".storage"))
for _key in ("GEMINI_API_KEY", "GROQ_API_KEY", "OPENAI_API_KEY"):
    os.environ.pop(_key, None)
