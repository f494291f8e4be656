from pydantic import BaseModel, ConfigDict, Field


class Term(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: str
    type: str | None = None
    datatype: str | None = None


class Triple(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subject: Term
    predicate: Term
    object: Term


class ChangeSet(BaseModel):
    model_config = ConfigDict(extra="ignore")

    inserts: list[Triple] = Field(default_factory=list)
    deletes: list[Triple] = Field(default_factory=list)
