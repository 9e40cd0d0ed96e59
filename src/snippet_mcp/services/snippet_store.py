from snippet_shared.redis_manager import RedisManager

SNIPPET_NOT_FOUND = "Snippet not found"


class SnippetStore:
    """
    Named text snippets persisted as one object per name in a single container.

    Absence is a data-level result: fetching an unknown name returns the
    `SNIPPET_NOT_FOUND` sentinel. Storing always overwrites (last write wins).
    Backend errors are not caught here.
    """

    def __init__(self, backend: RedisManager, container: str = "snippets") -> None:
        self._backend = backend
        self._container = container

    @staticmethod
    def object_name(name: str) -> str:
        return f"{name}.json"

    def fetch(self, name: str) -> str:
        key = self.object_name(name)
        if not self._backend.exists(self._container, key):
            return SNIPPET_NOT_FOUND

        data = self._backend.get(self._container, key)
        # The object may disappear between the two calls
        if data is None:
            return SNIPPET_NOT_FOUND
        return data.decode("utf-8")

    def store(self, name: str, content: str) -> str:
        self._backend.ensure_container(self._container)
        self._backend.put(self._container, self.object_name(name), content.encode("utf-8"))
        return f"Snippet '{content}' saved successfully"
