"""
Data Models Module

Pydantic models describing the payloads that pass through the proxy.

The proxy never validates inbound bodies against these models: backend
payloads are forwarded untouched. They exist so the generated API document
(/api-docs.json) describes the LUIS and Rasa formats the callers speak.

Models are organized by functional area:
- LUIS application import document
- LUIS training examples
- Rasa parse request/response
- Proxy-local payloads (config, status, errors)
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# LUIS Application Import Models
# ============================================================================

class HierarchicalModel(BaseModel):
    Name: Optional[str] = None
    Children: Optional[List[str]] = None


class Setting(BaseModel):
    Name: Optional[str] = None
    Value: Optional[str] = None


class Channel(BaseModel):
    Settings: Optional[List[Setting]] = None
    Name: Optional[str] = None
    Method: Optional[str] = None


class JSONActionParam(BaseModel):
    phraseListFeatureName: Optional[str] = None
    parameterName: Optional[str] = None
    entityName: Optional[str] = None
    required: Optional[bool] = None
    question: Optional[str] = None


class JSONAction(BaseModel):
    actionName: Optional[str] = None
    actionParameters: Optional[List[JSONActionParam]] = None
    intentName: Optional[str] = None
    channel: Optional[Channel] = None


class JSONSubClosedList(BaseModel):
    CanonicalForm: Optional[str] = None
    synonyms: Optional[List[str]] = Field(None, alias="List")


class JSONClosedList(BaseModel):
    Name: Optional[str] = None
    SubLists: Optional[List[JSONSubClosedList]] = None


class JSONRegexFeature(BaseModel):
    pattern: Optional[str] = None
    activated: Optional[bool] = None
    name: Optional[str] = None


class JSONModelFeature(BaseModel):
    activated: Optional[bool] = None
    name: Optional[str] = None
    words: Optional[str] = None
    mode: Optional[bool] = None


class JSONEntity(BaseModel):
    startPos: Optional[str] = None
    endPos: Optional[str] = None
    entity: Optional[str] = None


class JSONUtterance(BaseModel):
    text: Optional[str] = None
    intent: Optional[str] = None
    entities: Optional[List[JSONEntity]] = None


class JSONApp(BaseModel):
    """A JSON document representing the LUIS application structure."""

    model_config = ConfigDict(protected_namespaces=())

    name: Optional[str] = None
    versionId: Optional[str] = None
    desc: Optional[str] = None
    culture: Optional[str] = None
    intents: Optional[List[HierarchicalModel]] = None
    entities: Optional[List[HierarchicalModel]] = None
    bing_entities: Optional[List[str]] = None
    actions: Optional[List[JSONAction]] = None
    closedLists: Optional[List[JSONClosedList]] = None
    composites: Optional[List[HierarchicalModel]] = None
    regex_features: Optional[List[JSONRegexFeature]] = None
    model_features: Optional[List[JSONModelFeature]] = None
    utterances: Optional[List[JSONUtterance]] = None


# ============================================================================
# LUIS Training Example Models
# ============================================================================

class EntityLabel(BaseModel):
    startCharIndex: int = Field(..., description="The start index of the entity substring in the text")
    endCharIndex: int = Field(..., description="The end index of the entity substring in the text")
    entityName: str = Field(..., description="The entity name and value")


class Example(BaseModel):
    text: str = Field(..., description="The utterance to parse.")
    intentName: str = Field(..., description="The intent of the utterance.")
    entityLabels: List[EntityLabel] = Field(..., description="The list of entities extracted from the utterance.")


# ============================================================================
# Rasa Parse Models
# ============================================================================

class Message(BaseModel):
    q: str = Field(..., description="The utterance to parse.")


class ParseEntity(BaseModel):
    start: Optional[int] = Field(None, description="The start index of the entity substring in the text")
    end: Optional[int] = Field(None, description="The end index of the entity substring in the text")
    value: Optional[str] = Field(None, description="The entity instance or synonym")
    entity: Optional[str] = Field(None, description="The entity name")


class Intent(BaseModel):
    confidence: Optional[float] = Field(None, description="Rasa's confidence in the intent.")
    name: Optional[str] = Field(None, description="The name of the intent.")


class ParseResponse(BaseModel):
    text: Optional[str] = Field(None, description="The parsed utterance.")
    entities: Optional[List[ParseEntity]] = Field(None, description="The list of extracted entities.")
    intent: Optional[Intent] = Field(None, description="The top scoring intent.")
    intent_ranking: Optional[List[Intent]] = Field(None, description="The list of all matching intents.")


# ============================================================================
# Proxy Models
# ============================================================================

class ConfigPayload(BaseModel):
    """Body of POST /config. Omitted or empty fields reset to the defaults."""

    url: Optional[str] = Field(None, description="Backend base URL")
    appId: Optional[str] = Field(None, description="LUIS application ID")
    appKey: Optional[str] = Field(None, description="LUIS subscription key")


class StatusResponse(BaseModel):
    status: str = Field(..., description="Always 'OK'")


class ErrorResponse(BaseModel):
    """Error body returned when a backend call fails."""

    status: int = Field(..., description="HTTP status code (500)")
    message: str = Field(..., description="Operation-specific error description")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


# Models published under components/schemas in the API document
DOCUMENTED_MODELS = [
    JSONApp,
    Example,
    Message,
    ParseResponse,
    ConfigPayload,
    StatusResponse,
    ErrorResponse,
    HealthResponse,
]
