import click


class AbstractWaiterHook:

    def __init__(self, pk: str) -> None:
        self.pk = pk

    def mark(self, status, service, num_attempts, **kwargs):
        click.secho('=' * 72, fg='yellow', bold=True)

    def setup(self, status, service, num_attempts, **kwargs):
        """
        Do any necessary setup on the poll before we've done our per-state processing.  This will get
        called once per poll.
        """
        pass

    def waiting(self, status, service, num_attempts, **kwargs):
        """
        Do something when our watcher state is 'DEPLOYING'.
        """
        pass

    def success(self, status, service, num_attempts, **kwargs):
        """
        Do something when our watcher state is 'STABLE'.
        """
        pass

    def timeout(self, status, service, num_attempts, **kwargs):
        """
        Do something when our watcher state is 'TIMED_OUT'.
        """
        pass

    def cancelled(self, status, service, num_attempts, **kwargs):
        """
        Do something when our watcher state is 'CANCELLED'.  ``service`` will be ``None``.
        """
        pass

    def cleanup(self, status, service, num_attempts, **kwargs):
        """
        Do any necessary cleanup after the poll has completed and we've done our per-state processing.
        This will get called once per poll.
        """
        pass

    def __call__(self, status, service, num_attempts, **kwargs):
        """
        args:
            * 'status': the watcher state. One of 'DEPLOYING', 'STABLE', 'TIMED_OUT' or 'CANCELLED'.
            * 'service': the Service from this poll
            * 'num_attempts': the current poll number

        kwargs:

            * 'name': the primary key of the service
            * 'Delay': the sleep amount in seconds
            * 'MaxAttempts': how many polls we'll perform before timing out
        """
        self.setup(status, service, num_attempts, **kwargs)
        if status == 'DEPLOYING':
            self.waiting(status, service, num_attempts, **kwargs)
        elif status == 'STABLE':
            self.success(status, service, num_attempts, **kwargs)
        elif status == 'TIMED_OUT':
            self.timeout(status, service, num_attempts, **kwargs)
        elif status == 'CANCELLED':
            self.cancelled(status, service, num_attempts, **kwargs)
        self.cleanup(status, service, num_attempts, **kwargs)
