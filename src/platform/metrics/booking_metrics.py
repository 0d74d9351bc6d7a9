from prometheus_client import Counter, Histogram


class BookingMetrics:
    """
    Booking core metrics collector

    Seat contention, gateway health and reconciliation outcomes are the
    signals worth alerting on; everything else comes from tracing.
    """

    def __init__(self):
        # ========== Seat Inventory ==========
        self.seat_hold_requests = Counter(
            'seat_hold_requests_total',
            'Seat hold requests',
            ['result'],  # success / conflict / invalid / timeout
        )

        self.seat_operations = Counter(
            'seat_operations_total',
            'Seat state transitions applied',
            ['operation'],  # hold / release / confirm / disable / sweep
        )

        self.lock_wait_duration = Histogram(
            'seat_lock_wait_seconds',
            'Time spent waiting for per-seat or per-txnRef critical sections',
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
        )

        # ========== Payment ==========
        self.gateway_requests = Counter(
            'payment_gateway_requests_total',
            'Payment gateway transaction requests',
            ['result'],  # success / rejected / transport_error / retried
        )

        self.gateway_duration = Histogram(
            'payment_gateway_duration_seconds',
            'Payment gateway call latency',
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        )

        # ========== Reconciliation ==========
        self.reconciliation_outcomes = Counter(
            'payment_reconciliation_outcomes_total',
            'Reconciliation results per handled provider delivery',
            ['outcome', 'replayed'],
        )

    def record_hold(self, *, result: str) -> None:
        self.seat_hold_requests.labels(result=result).inc()

    def record_seat_operation(self, *, operation: str, count: int = 1) -> None:
        if count:
            self.seat_operations.labels(operation=operation).inc(count)

    def record_lock_wait(self, *, duration: float) -> None:
        self.lock_wait_duration.observe(duration)

    def record_gateway_call(self, *, result: str, duration: float) -> None:
        self.gateway_requests.labels(result=result).inc()
        self.gateway_duration.observe(duration)

    def record_reconciliation(self, *, outcome: str, replayed: bool) -> None:
        self.reconciliation_outcomes.labels(outcome=outcome, replayed=str(replayed).lower()).inc()


# Global metrics instance
metrics = BookingMetrics()
