from typing import IO
from typing import Optional
from typing import Protocol


class BaseReporter(Protocol):
    def render(
        self,
        *,
        file: Optional[IO[str]] = None,
    ) -> None:
        ...
