from pydantic import Field

from reqbridge.models.request import ApiRequest, CamelModel, KeyValue, Script, new_id


class Folder(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = "Folder"
    description: str | None = None
    requests: list[ApiRequest] = Field(default_factory=list)
    folders: list["Folder"] = Field(default_factory=list)


class Collection(CamelModel):
    """Named group of requests, folders and variables.

    Top-level requests and folders live side by side; folders nest
    arbitrarily deep but always form a tree.
    """

    id: str = Field(default_factory=new_id)
    name: str = "New Collection"
    description: str | None = None
    requests: list[ApiRequest] = Field(default_factory=list)
    folders: list[Folder] = Field(default_factory=list)
    variables: list[KeyValue] = Field(default_factory=list)
    pre_request_script: Script | None = None
    test_script: Script | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def iter_requests(self):
        """Yield every request, top-level first, then folders depth-first."""
        yield from self.requests
        stack = list(reversed(self.folders))
        while stack:
            folder = stack.pop()
            yield from folder.requests
            stack.extend(reversed(folder.folders))
