"""
monitorspaces.mapping.rect - Estructura geometrica Rect.

Define un rectangulo inmutable que representa un area de pantalla.
Se usa para la geometria de cada monitor y para el frame de cada
ventana, y es la base de la regla "el centro decide el monitor".
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Rectangulo inmutable definido por posicion (x, y) y dimensiones (w, h).

    Todas las coordenadas estan en pixeles. El origen (0, 0) es la esquina
    superior-izquierda del monitor primario; los monitores a la izquierda
    o arriba del primario tienen coordenadas negativas.

    Atributos:
        x: Coordenada horizontal de la esquina superior-izquierda.
        y: Coordenada vertical de la esquina superior-izquierda.
        w: Ancho en pixeles.
        h: Alto en pixeles.
    """

    x: int
    y: int
    w: int
    h: int

    # ------------------------------------------------------------------
    # Propiedades derivadas
    # ------------------------------------------------------------------
    @property
    def left(self) -> int:
        return self.x

    @property
    def top(self) -> int:
        return self.y

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    @property
    def center_y(self) -> float:
        return self.y + self.h / 2

    @property
    def center(self) -> tuple[int, int]:
        """Centro redondeado hacia abajo, util para mover el puntero."""
        return (self.x + self.w // 2, self.y + self.h // 2)

    # ------------------------------------------------------------------
    # Operaciones geometricas
    # ------------------------------------------------------------------
    def contains_point(self, px: float, py: float) -> bool:
        """
        True si el punto esta dentro del rectangulo.

        Los limites son semiabiertos: [x, x + w) y [y, y + h), de modo
        que un punto sobre el borde compartido de dos monitores
        contiguos pertenece a uno solo de ellos.
        """
        return self.x <= px < self.x + self.w and self.y <= py < self.y + self.h

    def relative_to(self, origin: Rect) -> tuple[int, int]:
        """Offset (rel_x, rel_y) de este rect respecto al origen de *origin*."""
        return (self.x - origin.x, self.y - origin.y)

    def moved_to(self, x: int, y: int) -> Rect:
        """Mismo tamano, nueva posicion."""
        return Rect(x, y, self.w, self.h)

    def clamp_inside(self, bounds: Rect) -> Rect:
        """
        Desplaza el rectangulo para que quede dentro de *bounds*.

        Si el rectangulo es mas grande que *bounds* queda alineado a la
        esquina superior-izquierda.
        """
        x = max(bounds.x, min(self.x, bounds.x + bounds.w - self.w))
        y = max(bounds.y, min(self.y, bounds.y + bounds.h - self.h))
        return Rect(x, y, self.w, self.h)

    # ------------------------------------------------------------------
    # Desde la tupla Win32 (left, top, right, bottom)
    # ------------------------------------------------------------------
    @classmethod
    def from_ltrb(cls, left: int, top: int, right: int, bottom: int) -> Rect:
        """Crea un Rect desde coordenadas (left, top, right, bottom)."""
        return cls(left, top, right - left, bottom - top)

    # ------------------------------------------------------------------
    # Representacion
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        return f"Rect({self.w}x{self.h}+{self.x}+{self.y})"
