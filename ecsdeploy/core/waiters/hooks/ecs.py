from datetime import datetime
from textwrap import wrap

import click
from tabulate import tabulate
from tzlocal import get_localzone

from .abstract import AbstractWaiterHook


class ECSDeploymentTickHook(AbstractWaiterHook):
    """
    Print a '.' for each poll where the service is still deploying, and a '|'
    on every tenth one, all on one line.
    """

    def waiting(self, status, service, num_attempts, **kwargs):
        click.echo('|' if num_attempts % 10 == 0 else '.', nl=False)

    def success(self, status, service, num_attempts, **kwargs):
        click.echo('')
    timeout = success
    cancelled = success


class ECSDeploymentStatusWaiterHook(AbstractWaiterHook):
    """
    Print the deployments table and any new service events on each poll.
    """

    def __init__(self, pk: str) -> None:
        super().__init__(pk)
        self.our_timezone = get_localzone()
        self.start = datetime.now(tz=self.our_timezone)
        self.timestamp = self.start

    def display_deployments(self, deployments):
        rows = []
        for d in deployments:
            if d['status'] == 'PRIMARY':
                fg = 'green'
            elif d['status'] == 'ACTIVE':
                fg = 'yellow'
            else:
                fg = 'white'
            rows.append([
                click.style(d['status'], fg=fg),
                click.style(d['taskDefinition'], fg=fg),
                click.style(str(d.get('desiredCount', '')), fg=fg),
                click.style(str(d.get('pendingCount', '')), fg=fg),
                click.style(str(d.get('runningCount', '')), fg=fg)
            ])
        click.secho(tabulate(rows, headers=['Status', 'Task def', 'Desired', 'Pending', 'Running']))

    def display_events(self, events):
        rows = []
        events = sorted(events, key=lambda x: x['createdAt'])
        events.reverse()
        for e in events:
            if e['createdAt'] < self.start:
                break
            if e['createdAt'] < self.timestamp:
                fg = 'white'
            else:
                fg = 'yellow'
            rows.append([
                click.style(e['createdAt'].strftime('%Y-%m-%d %H:%M:%S'), fg=fg),
                click.style('\n'.join(wrap(e['message'], 80)), fg=fg)
            ])
        click.secho(tabulate(rows, headers=['Timestamp', 'Message']))

    def waiting(self, status, service, num_attempts, **kwargs):
        click.secho('\n\nDeployment status ({}/{}):'.format(num_attempts, kwargs['MaxAttempts']), fg='cyan')
        click.secho('------------------\n', fg='cyan')
        self.display_deployments(service.deployments)
        click.secho('\n\nService events:', fg='cyan')
        click.secho('---------------\n', fg='cyan')
        self.display_events(service.events)
        self.timestamp = datetime.now(tz=self.our_timezone)
        click.secho('\n')
        self.mark(status, service, num_attempts, **kwargs)

    def success(self, status, service, num_attempts, **kwargs):
        click.secho('\n\nService is stable!', fg='green')

    def timeout(self, status, service, num_attempts, **kwargs):
        click.secho('\n\nTimed out waiting for the service to stabilize!\n', fg='red')

    def cancelled(self, status, service, num_attempts, **kwargs):
        click.secho('\n\nCancelled while waiting for the service to stabilize!\n', fg='red')
