"""Base Pydantic models for authbridge.

Every configuration and result model in the package inherits from
`BridgeBaseModel`, which establishes:

- Strict field validation (no extra fields allowed)
- Immutable instances, so a configuration cannot drift during a login attempt

Example:
    >>> from authbridge.models import BridgeBaseModel
    >>>
    >>> class Endpoint(BridgeBaseModel):
    ...     url: str
    >>>
    >>> Endpoint(url="https://example.test/token").model_dump()
    {'url': 'https://example.test/token'}
"""

from pydantic import BaseModel, ConfigDict


class BridgeBaseModel(BaseModel):
    """Base model for all authbridge Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable and safe to share between
      concurrent login attempts
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
