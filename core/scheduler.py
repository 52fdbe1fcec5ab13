# ARQUIVO: core/scheduler.py
import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

import pytz
from croniter import CroniterBadCronError, CroniterBadDateError, croniter

from core.logger import get_logger

logger = get_logger("Scheduler")


class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


@dataclass
class RunOutcome:
    status: RunStatus
    details: dict = field(default_factory=dict)


# ==============================================================================
# 1. CADÊNCIA (cron de 5 campos)
# ==============================================================================
class CronSchedule:
    """
    Cron padrão: minuto, hora, dia do mês, mês, dia da semana.
    O fuso serve só para casar o calendário; os dados raspados continuam em UTC.
    A aritmética de datas fica com o croniter.
    """

    def __init__(self, expression: str, timezone: str = "UTC"):
        if len(expression.split()) != 5 or not croniter.is_valid(expression):
            raise ValueError(f"Expressão cron inválida (esperados 5 campos): {expression!r}")

        self.expression = expression
        self.timezone = timezone
        self.tz = pytz.timezone(timezone)
        # Bem formada mas impossível (ex: 30 de fevereiro): nunca dispara
        self.next_after()

    def next_after(self, moment: datetime = None) -> datetime:
        """Próximo minuto (UTC, aware) estritamente após `moment` que casa com a expressão."""
        if moment is None:
            moment = datetime.now(pytz.utc)
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)

        local = moment.astimezone(self.tz)
        try:
            next_local = croniter(self.expression, local).get_next(datetime)
        except (CroniterBadCronError, CroniterBadDateError) as e:
            raise ValueError(f"Expressão cron nunca dispara: {self.expression!r}") from e
        return next_local.astimezone(pytz.utc)

    def matches(self, moment: datetime) -> bool:
        """True se o minuto de `moment` é um disparo da expressão."""
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        minute = moment.astimezone(pytz.utc).replace(second=0, microsecond=0)
        return self.next_after(minute - timedelta(minutes=1)) == minute

    def describe(self) -> str:
        parts = self.expression.split()
        minute, hour, rest = parts[0], parts[1], parts[2:]
        if rest == ["*", "*", "*"]:
            if minute.startswith("*/") and hour == "*":
                return f"Every {minute[2:]} minutes"
            if minute.isdigit() and hour.isdigit():
                return f"Daily at {int(hour)}:{int(minute):02d} {self.timezone}"
        return f"Cron '{self.expression}' ({self.timezone})"


# ==============================================================================
# 2. ESTADO DE EXECUÇÃO
# ==============================================================================
@dataclass
class JobRunState:
    is_running: bool = False
    last_run_time: Optional[datetime] = None
    last_run_status: Optional[RunStatus] = None
    run_count: int = 0
    skipped_count: int = 0
    last_duration_seconds: Optional[float] = None
    last_error: Optional[str] = None
    last_details: dict = field(default_factory=dict)

    def snapshot(self) -> dict:
        return {
            "is_running": self.is_running,
            "last_run_time": self.last_run_time.isoformat() if self.last_run_time else None,
            "last_run_status": self.last_run_status.value if self.last_run_status else None,
            "run_count": self.run_count,
            "skipped_count": self.skipped_count,
            "last_duration_seconds": self.last_duration_seconds,
            "last_error": self.last_error,
            "last_details": dict(self.last_details),
        }


# ==============================================================================
# 3. JOB SINGLE-FLIGHT
# ==============================================================================
class SingleFlightJob:
    """
    Executa uma ação assíncrona em cadência fixa sem nunca sobrepor a si mesma.
    Tick do timer e disparo manual passam pela mesma trava.
    """

    def __init__(
        self,
        name: str,
        action: Callable[[], Awaitable[RunOutcome]],
        schedule: CronSchedule,
        run_on_start: bool = False,
    ):
        self.name = name
        self._action = action
        self.schedule = schedule
        self.run_on_start = run_on_start
        self._state = JobRunState()
        self._tasks = set()

    @property
    def state(self) -> JobRunState:
        return self._state

    async def run_once(self) -> Optional[RunStatus]:
        state = self._state
        # Checagem e marcação sem await no meio: atômicas dentro do event loop
        if state.is_running:
            state.skipped_count += 1
            logger.info(f"⏭️ {self.name}: execução anterior ainda em andamento, tick ignorado")
            return None

        state.is_running = True
        state.run_count += 1
        run_number = state.run_count
        started = time.monotonic()
        logger.info(f"🚀 {self.name} Job #{run_number} iniciado")

        status = RunStatus.FAILED
        error = None
        details = {}
        try:
            outcome = await self._action()
            status, details = outcome.status, outcome.details
        except Exception as e:
            error = str(e)
            logger.error(f"❌ {self.name} Job #{run_number} falhou: {e}", exc_info=True)
        finally:
            duration = round(time.monotonic() - started, 2)
            state.last_run_time = datetime.now(pytz.utc)
            state.last_run_status = status
            state.last_duration_seconds = duration
            state.last_error = error
            state.last_details = details
            state.is_running = False

        if error is None:
            logger.info(f"✅ {self.name} Job #{run_number} concluído em {duration}s ({status.value})")
        return status

    async def trigger_manual_run(self) -> Optional[RunStatus]:
        logger.info(f"🔧 {self.name}: disparo manual solicitado")
        return await self.run_once()

    def fire(self, manual: bool = False) -> asyncio.Task:
        """Dispara um tick em segundo plano (não espera o fim da execução)."""
        task = asyncio.ensure_future(self.trigger_manual_run() if manual else self.run_once())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def get_status(self, now: datetime = None) -> dict:
        now = now or datetime.now(pytz.utc)
        status = self._state.snapshot()
        next_run = self.schedule.next_after(now)
        status.update({
            "job": self.name,
            "schedule": self.schedule.describe(),
            "cron": self.schedule.expression,
            "timezone": self.schedule.timezone,
            "next_run_at": next_run.isoformat(),
            "next_run_in": "Running now" if self._state.is_running else f"{int((next_run - now).total_seconds())}s",
        })
        return status

    async def serve(self):
        logger.info(f"🕐 {self.name}: {self.schedule.describe()} | Fuso: {self.schedule.timezone}")
        if self.run_on_start:
            logger.info(f"🏃 {self.name}: execução inicial")
            self.fire()

        while True:
            now = datetime.now(pytz.utc)
            next_run = self.schedule.next_after(now)
            await asyncio.sleep(max((next_run - now).total_seconds(), 0))
            self.fire()


# ==============================================================================
# 4. ORQUESTRADOR
# ==============================================================================
class JobScheduler:
    """Mantém os loops `serve()` de vários jobs; cada job tem sua própria trava."""

    def __init__(self, jobs: List[SingleFlightJob] = None):
        self.jobs: Dict[str, SingleFlightJob] = {}
        self._loops: List[asyncio.Task] = []
        for job in jobs or []:
            self.add(job)

    def add(self, job: SingleFlightJob):
        self.jobs[job.name] = job

    @property
    def running(self) -> bool:
        return bool(self._loops)

    def start(self):
        if self._loops:
            return
        for job in self.jobs.values():
            self._loops.append(asyncio.ensure_future(job.serve()))
        logger.info(f"⏰ Scheduler ativo com {len(self._loops)} jobs")

    async def stop(self):
        for loop_task in self._loops:
            loop_task.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops = []
        logger.info("🛑 Scheduler parado")

    async def run_forever(self):
        self.start()
        await asyncio.gather(*self._loops)
