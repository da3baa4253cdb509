"""
Presentation helpers shared by the command line and the interactive prompt:
number formatting, caret diagnostics and the JSON result model.
"""

from typing import Optional

from pydantic import BaseModel, Field

from eval_expr.errors import EvalError


def format_number(value: float) -> str:
    """Render a result, dropping the fractional part of integral values."""
    if value == 0:
        # also folds -0.0
        return "0"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def describe_error(text: str, error: EvalError) -> str:
    """Return the error message followed by the source line with a caret under the offending column."""
    message = f"Error: {error}"
    if error.position is None or not text:
        return message
    line = text.replace("\t", " ").replace("\n", " ")
    column = min(error.position, len(line))
    return f"{message}\n  {line}\n  {' ' * column}^"


# ----- Pydantic Models -----

class ErrorDetail(BaseModel):
    """Machine-readable description of an evaluation failure."""
    code: str
    message: str
    position: Optional[int] = Field(None, ge=0, description="0-based offset into the expression")


class EvaluationOutcome(BaseModel):
    """Result of evaluating one expression, as printed by ``--json``."""
    expression: str
    ok: bool
    value: Optional[float] = None
    display: Optional[str] = None
    error: Optional[ErrorDetail] = None

    @classmethod
    def success(cls, expression: str, value: float) -> "EvaluationOutcome":
        return cls(expression=expression, ok=True, value=value, display=format_number(value))

    @classmethod
    def failure(cls, expression: str, error: EvalError) -> "EvaluationOutcome":
        return cls(
            expression=expression,
            ok=False,
            error=ErrorDetail(code=error.code, message=error.message, position=error.position),
        )
