"""
monitorspaces.mapping.scheduler - Ejecucion diferida cooperativa.

Todo el motor corre en un unico hilo. Las operaciones de varios pasos
(p.ej. quitar maximizado -> mover -> restaurar maximizado) no bloquean:
se expresan como una cadena de continuaciones (TaskChain) que el
Scheduler ejecuta cuando vence cada retardo.

    Scheduler       - cola de temporizadores (idle / timeout) sobre un reloj
                      inyectable. El backend la avanza desde su message loop.
    TaskChain       - pasos encadenados con un guard que se evalua antes de
                      cada paso; si falla, el resto de la cadena se descarta
                      en silencio.
    OperationQueue  - una sola operacion en vuelo: las peticiones que llegan
                      mientras otra operacion tiene cadenas pendientes esperan
                      su turno en orden de llegada.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from monitorspaces.mapping.host import HostWindow

log = logging.getLogger(__name__)


Callback = Callable[[], None]
Guard = Callable[[], bool]
Clock = Callable[[], float]


# ============================================================================
# Scheduler
# ============================================================================
@dataclass(order=True)
class _Timer:
    due: float
    seq: int
    source_id: int = field(compare=False)
    callback: Callback = field(compare=False)


class Scheduler:
    """
    Cola de temporizadores de un solo hilo.

    ``idle_add`` programa para la siguiente pasada; ``timeout_add`` tras
    un retardo en milisegundos. ``run_pending`` ejecuta lo vencido; lo
    que se programe durante una pasada espera a la siguiente.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._heap: list[_Timer] = []
        self._cancelled: set[int] = set()
        self._seq = itertools.count()
        self._ids = itertools.count(1)

    def now(self) -> float:
        return self._clock()

    def idle_add(self, callback: Callback) -> int:
        return self._push(0.0, callback)

    def timeout_add(self, delay_ms: int, callback: Callback) -> int:
        return self._push(max(0, delay_ms) / 1000.0, callback)

    def _push(self, delay: float, callback: Callback) -> int:
        source_id = next(self._ids)
        heapq.heappush(
            self._heap,
            _Timer(self._clock() + delay, next(self._seq), source_id, callback),
        )
        return source_id

    def remove(self, source_id: int) -> None:
        self._cancelled.add(source_id)

    def clear(self) -> None:
        self._heap.clear()
        self._cancelled.clear()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._heap if t.source_id not in self._cancelled)

    def next_deadline(self) -> Optional[float]:
        """Instante del proximo temporizador vivo, o None si no hay."""
        while self._heap and self._heap[0].source_id in self._cancelled:
            self._cancelled.discard(heapq.heappop(self._heap).source_id)
        return self._heap[0].due if self._heap else None

    def run_pending(self) -> int:
        """Ejecuta los temporizadores vencidos. Retorna cuantos corrieron."""
        now = self._clock()
        barrier = next(self._seq)
        ran = 0

        while self._heap:
            timer = self._heap[0]
            if timer.due > now or timer.seq > barrier:
                break
            heapq.heappop(self._heap)
            if timer.source_id in self._cancelled:
                self._cancelled.discard(timer.source_id)
                continue
            ran += 1
            try:
                timer.callback()
            except Exception:
                log.exception("Error en callback diferido %d", timer.source_id)

        # Temporizadores programados durante la pasada quedan en el heap
        # con seq > barrier aunque ya hayan vencido: se respeta el orden.
        return ran


# ============================================================================
# TaskChain
# ============================================================================
class TaskChain:
    """
    Cadena de pasos diferidos de una misma operacion.

    Cada paso corre ``delay_ms`` despues de que termine el anterior.
    Antes de cada paso se evalua el guard; si retorna False la cadena
    se aborta en silencio (la ventana fue destruida, etc.).
    """

    def __init__(
        self,
        scheduler: Scheduler,
        name: str,
        guard: Optional[Guard] = None,
    ) -> None:
        self._scheduler = scheduler
        self.name = name
        self._guard = guard
        self._steps: deque[tuple[int, Callback]] = deque()
        self._on_done: list[Callable[[TaskChain], None]] = []
        self._source_id: Optional[int] = None
        self.started = False
        self.finished = False
        self.aborted = False

    def then(self, delay_ms: int, step: Callback) -> TaskChain:
        self._steps.append((delay_ms, step))
        return self

    def on_done(self, callback: Callable[[TaskChain], None]) -> TaskChain:
        if self.finished:
            callback(self)
        else:
            self._on_done.append(callback)
        return self

    def start(self) -> TaskChain:
        if self.started:
            return self
        self.started = True
        self._schedule_next()
        return self

    def cancel(self) -> None:
        if self._source_id is not None:
            self._scheduler.remove(self._source_id)
            self._source_id = None
        self._finish(aborted=True)

    # ------------------------------------------------------------------
    def _schedule_next(self) -> None:
        if not self._steps:
            self._finish(aborted=False)
            return
        delay_ms, _step = self._steps[0]
        self._source_id = self._scheduler.timeout_add(delay_ms, self._run_step)

    def _run_step(self) -> None:
        self._source_id = None
        if self.finished or not self._steps:
            return
        _delay, step = self._steps.popleft()

        if self._guard is not None and not self._guard():
            log.debug("Cadena %s abortada (guard)", self.name)
            self._steps.clear()
            self._finish(aborted=True)
            return

        try:
            step()
        except Exception:
            log.exception("Error en paso de la cadena %s", self.name)
            self._steps.clear()
            self._finish(aborted=True)
            return

        self._schedule_next()

    def _finish(self, aborted: bool) -> None:
        if self.finished:
            return
        self.finished = True
        self.aborted = aborted
        callbacks, self._on_done = self._on_done, []
        for cb in callbacks:
            try:
                cb(self)
            except Exception:
                log.exception("Error en on_done de la cadena %s", self.name)

    def __repr__(self) -> str:
        state = "aborted" if self.aborted else "done" if self.finished else "running"
        return f"TaskChain({self.name!r}, {state}, steps={len(self._steps)})"


def windows_alive(windows: Iterable[HostWindow]) -> Guard:
    """Guard que exige que ninguna de las ventanas haya sido destruida."""
    snapshot = tuple(windows)
    return lambda: not any(w.is_destroyed() for w in snapshot)


# ============================================================================
# OperationQueue
# ============================================================================
class OperationQueue:
    """
    Serializa las operaciones de cambio de workspace.

    ``submit`` ejecuta la operacion de inmediato si la cola esta libre.
    Las cadenas creadas con ``chain`` mientras una operacion se ejecuta
    quedan asociadas a ella, y la operacion no se considera terminada
    hasta que todas sus cadenas acaban (o abortan). Solo entonces corre
    la siguiente peticion en espera.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._waiting: deque[tuple[str, Callback]] = deque()
        self._current: Optional[str] = None
        self._collecting = False
        self._active: set[TaskChain] = set()
        self._draining = False

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def busy(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> Optional[str]:
        return self._current

    @property
    def waiting(self) -> int:
        return len(self._waiting)

    def chain(self, name: str, guard: Optional[Guard] = None) -> TaskChain:
        """Crea una cadena; si hay una operacion en curso, la vincula a ella."""
        chain = TaskChain(self._scheduler, name, guard)
        if self._collecting:
            self._active.add(chain)
            chain.on_done(self._chain_done)
        return chain

    def submit(self, name: str, operation: Callback) -> None:
        self._waiting.append((name, operation))
        if self._current is None:
            self._drain()
        else:
            log.debug("Operacion %s en espera (en curso: %s, cola: %d)",
                      name, self._current, len(self._waiting))

    def reset(self) -> None:
        """Descarta peticiones en espera y olvida las cadenas en curso."""
        # Primero olvidar la operacion: cancelar una cadena la daria por
        # terminada y arrancaria la siguiente en espera
        chains, self._active = list(self._active), set()
        self._waiting.clear()
        self._current = None
        self._collecting = False
        for chain in chains:
            chain.cancel()

    # ------------------------------------------------------------------
    def _drain(self) -> None:
        if self._draining:
            return
        self._draining = True
        try:
            while self._current is None and self._waiting:
                name, operation = self._waiting.popleft()
                self._current = name
                self._collecting = True
                try:
                    operation()
                except Exception:
                    log.exception("Error en la operacion %s", name)
                finally:
                    self._collecting = False
                # Las cadenas se arrancan dentro de la operacion; si ninguna
                # quedo pendiente, la operacion ya termino.
                self._active = {c for c in self._active if not c.finished}
                if not self._active:
                    self._current = None
        finally:
            self._draining = False

    def _chain_done(self, chain: TaskChain) -> None:
        self._active.discard(chain)
        if self._collecting or self._current is None:
            return
        if not self._active:
            log.debug("Operacion %s completada", self._current)
            self._current = None
            self._drain()
