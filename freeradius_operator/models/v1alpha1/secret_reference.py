from kube_custom_resource import schema
from pydantic import Field


__all__ = ["SecretReference"]


class SecretReference(schema.BaseModel):
    """
    A reference to a secret holding sensitive values for a resource.
    """

    name: schema.constr(min_length=1) = Field(
        ..., description="The name of the secret."
    )
    namespace: schema.Optional[schema.constr(min_length=1)] = Field(
        None,
        description=(
            "The namespace of the secret. "
            "If not given, the namespace of the referring resource is used."
        ),
    )
