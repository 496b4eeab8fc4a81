import threading
from typing import Callable, Dict

from doctor_portal.models.doctor import Operator
from doctor_portal.services.secure_access import SecureAccessMachine


class AccessRegistry:
    """One secure access machine per signed-in doctor, held in memory."""

    def __init__(self, machine_factory: Callable[[Operator], SecureAccessMachine]):
        self.machine_factory = machine_factory
        self._machines: Dict[str, SecureAccessMachine] = {}
        self._lock = threading.Lock()

    def get(self, operator: Operator) -> SecureAccessMachine:
        with self._lock:
            machine = self._machines.get(operator.uid)
            if machine is None:
                machine = self.machine_factory(operator)
                self._machines[operator.uid] = machine
            else:
                # Profile edits (name, hospital) apply from the next search
                machine.operator = operator
            return machine

    def dispose(self, uid: str):
        with self._lock:
            machine = self._machines.pop(uid, None)
        if machine is not None:
            machine.dispose()

    def dispose_all(self):
        with self._lock:
            machines = list(self._machines.values())
            self._machines.clear()
        for machine in machines:
            machine.dispose()

    def __len__(self):
        with self._lock:
            return len(self._machines)
