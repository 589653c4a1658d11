"""RecognizedSpan models and the structured-output schema sent to the recognizer."""
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class BoundingBox(BaseModel):
    """Axis-aligned text rectangle in source-frame pixel coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


class RecognizedSpan(BaseModel):
    """One text block found in a frame."""
    model_config = ConfigDict(populate_by_name=True)

    text: str
    bounding_box: BoundingBox = Field(alias="boundingBox")


# response_schema for GenerateContentConfig (OpenAPI subset, upper-case type names).
OCR_RESPONSE_SCHEMA: dict = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "text": {
                "type": "STRING",
                "description": "The recognized text content.",
            },
            "boundingBox": {
                "type": "OBJECT",
                "properties": {
                    "x": {"type": "NUMBER"},
                    "y": {"type": "NUMBER"},
                    "width": {"type": "NUMBER"},
                    "height": {"type": "NUMBER"},
                },
                "required": ["x", "y", "width", "height"],
            },
        },
        "required": ["text", "boundingBox"],
    },
}

_adapter: TypeAdapter[list[RecognizedSpan]] = TypeAdapter(list[RecognizedSpan])


def validate_spans(data: object) -> list[RecognizedSpan]:
    """Validate a decoded JSON array against the RecognizedSpan schema.

    Raises pydantic.ValidationError if the data does not conform.
    """
    return _adapter.validate_python(data)
