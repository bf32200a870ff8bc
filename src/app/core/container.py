"""의존성 주입 컨테이너"""
from typing import Any, Callable, Dict, Type, TypeVar


T = TypeVar('T')

class DIContainer:
    """싱글톤/지연 생성 서비스를 타입 키로 보관하는 단순 컨테이너"""

    def __init__(self):
        self._singletons: Dict[Type, Any] = {}
        self._factories: Dict[Type, Callable[[], Any]] = {}

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """싱글톤 인스턴스 등록"""
        self._singletons[interface] = implementation

    def register_factory(self, interface: Type[T], factory_func: Callable[[], T]) -> None:
        """최초 조회 시 한 번 생성되는 서비스 등록"""
        self._factories[interface] = factory_func
        self._singletons.pop(interface, None)

    def get(self, interface: Type[T]) -> T:
        """서비스 인스턴스 조회"""
        if interface in self._singletons:
            return self._singletons[interface]

        if interface in self._factories:
            instance = self._factories[interface]()
            self._singletons[interface] = instance
            return instance

        interface_name = getattr(interface, "__name__", repr(interface))
        raise ValueError(f"Service {interface_name} not registered")

    def clear(self) -> None:
        """등록 정보 전체 삭제 (테스트/재구성용)"""
        self._singletons.clear()
        self._factories.clear()

# 전역 컨테이너 인스턴스
container = DIContainer()
