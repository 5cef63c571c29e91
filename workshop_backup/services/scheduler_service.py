"""
Servicio de programación de tareas de backup
"""
import asyncio
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional
from apscheduler.triggers.cron import CronTrigger
from ..exceptions import BackupError
from ..logger import LoggerService
from ..models import BackupSettings
from .backup_service import BackupService


class SchedulerState(Enum):
    """Estados del programador"""
    DISABLED = "disabled"
    ARMED = "armed"
    STOPPED = "stopped"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Numeración cron: 0 y 7 son domingo
CRON_WEEKDAYS = ['sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat']


def _weekday_number(value: str) -> int:
    value = value.lower()
    if value in CRON_WEEKDAYS:
        return CRON_WEEKDAYS.index(value)
    if value.isdigit() and 0 <= int(value) <= 7:
        return int(value)
    raise ValueError(f"Día de la semana inválido: {value!r}")


def cron_day_of_week(field: str) -> str:
    """
    Traduce el campo día-de-la-semana de cron al formato de APScheduler

    APScheduler numera desde el lunes (0 = lunes); cron desde el domingo
    (0 o 7 = domingo). Se expanden listas, rangos y pasos a nombres de día.

    Args:
        field: Quinto campo de la expresión cron (ej: '1-5', '0,6', '*/2')

    Returns:
        '*' o lista de nombres separados por comas (ej: 'mon,tue,wed')

    Raises:
        ValueError: si el campo no es válido
    """
    days = set()
    for part in field.split(','):
        span, _, step = part.partition('/')
        if step and (not step.isdigit() or int(step) < 1):
            raise ValueError(f"Paso inválido en día de la semana: {part!r}")

        if span == '*':
            first, last = 0, 6
        elif '-' in span:
            start, _, end = span.partition('-')
            first, last = _weekday_number(start), _weekday_number(end)
            if first > last:
                raise ValueError(f"Rango inválido en día de la semana: {part!r}")
        else:
            first = _weekday_number(span)
            last = 6 if step else first

        for number in range(first, last + 1, int(step or 1)):
            days.add(number % 7)

    if len(days) == 7:
        return '*'
    return ','.join(CRON_WEEKDAYS[number] for number in sorted(days))


def validate_cron(expression: str, tz: str) -> CronTrigger:
    """
    Valida una expresión cron de 5 campos

    Raises:
        ValueError: si la expresión o la zona horaria son inválidas
    """
    values = expression.split()
    if len(values) != 5:
        raise ValueError(f"Se esperaban 5 campos y hay {len(values)}")

    minute, hour, day, month, day_of_week = values
    try:
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=cron_day_of_week(day_of_week),
            timezone=tz,
        )
    except (ValueError, LookupError) as e:
        raise ValueError(str(e)) from e


class SchedulerService:
    """
    Programador de backups automáticos

    DISABLED (flag apagado o cron inválido) -> ARMED -> STOPPED.
    El reloj y la espera se inyectan para poder probar los ticks
    sin temporizadores reales.
    """

    def __init__(
        self,
        backup_service: BackupService,
        settings: Optional[BackupSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Inicializa el servicio de programación

        Args:
            backup_service: Servicio de backup a ejecutar
            settings: Configuración (por defecto la del servicio de backup)
            clock: Fuente de la hora actual (con zona horaria)
            sleep: Corrutina de espera en segundos
        """
        self.backup_service = backup_service
        self.settings = settings or backup_service.settings
        self.clock = clock or _utc_now
        self.sleep = sleep or asyncio.sleep
        self.logger = LoggerService.get_logger("SchedulerService")

        self.state = SchedulerState.DISABLED
        self.ticks = 0
        self._trigger: Optional[CronTrigger] = None
        self._task: Optional[asyncio.Task] = None
        self._sleeping = False

        if not self.settings.auto_backup_enabled:
            self.logger.info("El backup automático está deshabilitado")
            return

        try:
            self._trigger = validate_cron(self.settings.schedule, self.settings.timezone)
        except ValueError as e:
            self.logger.error(
                f"Expresión BACKUP_SCHEDULE inválida ({self.settings.schedule!r}): {e}"
            )
            return

        self.state = SchedulerState.ARMED

    @property
    def is_armed(self) -> bool:
        return self.state is SchedulerState.ARMED

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def next_run(self, after: Optional[datetime] = None) -> Optional[datetime]:
        """
        Próxima ejecución programada

        Returns:
            Fecha de la próxima ejecución o None si no está armado
        """
        if not self.is_armed or self._trigger is None:
            return None
        return self._trigger.get_next_fire_time(None, after or self.clock())

    def start(self) -> Optional[asyncio.Task]:
        """
        Lanza el ciclo de ticks en el loop actual

        Returns:
            La tarea del ciclo, o None si el programador no está armado
        """
        if not self.is_armed:
            return None
        if self._task is not None and not self._task.done():
            self.logger.warning("El programador ya está en ejecución")
            return self._task

        self._task = asyncio.create_task(self.run())

        self.logger.info("=" * 70)
        self.logger.info("PROGRAMADOR DE BACKUP AUTOMÁTICO INICIADO")
        self.logger.info("=" * 70)
        self.logger.info(f"Schedule: {self.settings.schedule}")
        self.logger.info(f"Zona horaria: {self.settings.timezone}")
        self.logger.info(f"Retención: {self.settings.max_backups} backup(s)")
        self.logger.info(f"Próxima ejecución: {self.next_run()}")
        self.logger.info("=" * 70)
        return self._task

    async def run(self):
        """Espera cada disparo del cron y ejecuta un backup, hasta stop()"""
        previous = None
        try:
            while self.is_armed:
                now = self.clock()
                fire_time = self._next_fire_time(previous, now)
                if fire_time is None:
                    self.logger.warning("El schedule no tiene más ejecuciones")
                    return

                delay = max((fire_time - now).total_seconds(), 0.0)
                self._sleeping = True
                try:
                    await self.sleep(delay)
                finally:
                    self._sleeping = False

                if not self.is_armed:
                    break
                await self.tick()
                previous = fire_time
        except asyncio.CancelledError:
            if self.state is not SchedulerState.STOPPED:
                raise

    def _next_fire_time(self, previous: Optional[datetime], now: datetime) -> Optional[datetime]:
        """
        Siguiente disparo posterior al anterior y no anterior a `now`

        Los disparos perdidos mientras corría un backup se omiten.
        """
        if previous is None:
            return self._trigger.get_next_fire_time(None, now)

        floor = previous + timedelta(microseconds=1)
        expected = self._trigger.get_next_fire_time(None, floor)
        if expected is not None and expected < now:
            self.logger.warning(
                f"Se omite la ejecución de {expected}: el backup anterior seguía en curso"
            )
        return self._trigger.get_next_fire_time(None, max(floor, now))

    async def tick(self):
        """Ejecuta un backup programado; los errores se registran y no se propagan"""
        self.ticks += 1
        self.logger.info("Iniciando backup automático...")
        try:
            backup = await self.backup_service.create_backup()
            self.logger.info(f"Backup automático completado: {backup.filename}")
        except BackupError as e:
            self.logger.error(f"Falló el backup automático: {e}")
        except Exception as e:
            self.logger.error(f"Error crítico durante backup automático: {e}", exc_info=True)

    def stop(self):
        """
        Detiene el programador (estado terminal)

        Un backup en curso no se cancela; el ciclo termina al finalizarlo.
        """
        if not self.is_armed:
            return

        self.state = SchedulerState.STOPPED
        task = self._task
        if task is not None and not task.done() and self._sleeping:
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()
        self.logger.info("Programador de backup detenido")
