import inspect
from typing import Any, Callable, Dict, Iterable, Iterator, List, Type, TypeVar

T = TypeVar("T")


class Registry:
    """Maps section names to the collector classes that produce them."""

    def __init__(self, name: str):
        """
        Args:
            name: The name of the registry, used in error messages.
        """
        self._name = name
        self._components: Dict[str, Type[Any]] = {}

    def register(self, name: str) -> Callable[[Type[T]], Type[T]]:
        """
        A class decorator registering a collector under ``name``.

        Raises:
            ValueError: If the name is already taken.
            TypeError: If the class has no ``async def collect()``.
        """
        def decorator(cls: Type[T]) -> Type[T]:
            if name in self._components:
                raise ValueError(f"Component '{name}' already registered in '{self._name}' registry.")
            if not inspect.iscoroutinefunction(getattr(cls, "collect", None)):
                raise TypeError(f"'{cls.__name__}' must define 'async def collect()' to be a {self._name}.")
            self._components[name] = cls
            return cls
        return decorator

    def get(self, name: str) -> Type[Any]:
        """
        Raises:
            KeyError: If the name is not registered.
        """
        try:
            return self._components[name]
        except KeyError:
            raise KeyError(f"Component '{name}' not found in '{self._name}' registry.") from None

    def create(self, name: str, **kwargs: Any) -> Any:
        return self.get(name)(**kwargs)

    def create_all(self, names: Iterable[str], **kwargs: Any) -> List[Any]:
        """Instantiates one component per name, in order, with shared keyword arguments."""
        return [self.create(name, **kwargs) for name in names]

    def __contains__(self, name: str) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._components))

    def __len__(self) -> int:
        return len(self._components)


collector_registry = Registry("collector")
