from pydantic import BaseModel, Field

from segmenter.citations import Citation


class ParseResponseRequest(BaseModel):
    content: str = ""
    citations: list[Citation] | None = None


class ContentRequest(BaseModel):
    content: str = ""


class ExecuteCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    timeout_ms: int | None = Field(default=None, ge=1)
    extra_packages: list[str] = Field(default_factory=list, max_length=20)
