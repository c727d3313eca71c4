from datetime import datetime, timedelta, timezone
import unittest

from testfixtures import OutputCapture

from ecsdeploy.core.models import Service
from ecsdeploy.core.waiters.hooks.ecs import ECSDeploymentStatusWaiterHook, ECSDeploymentTickHook


NEW_ARN = 'arn:aws:ecs:us-west-2:123456789012:task-definition/foobar:2'
OLD_ARN = 'arn:aws:ecs:us-west-2:123456789012:task-definition/foobar:1'

HOOK_KWARGS = {'name': 'foobar-cluster:foobar', 'MaxAttempts': 31, 'Delay': 2}


class TestECSDeploymentStatusWaiterHook(unittest.TestCase):

    def setUp(self):
        self.hook = ECSDeploymentStatusWaiterHook('foobar-cluster:foobar')
        now = datetime.now(tz=timezone.utc)
        self.service = Service({
            'serviceName': 'foobar',
            'clusterArn': 'arn:aws:ecs:us-west-2:123456789012:cluster/foobar-cluster',
            'status': 'ACTIVE',
            'taskDefinition': NEW_ARN,
            'deployments': [
                {'status': 'PRIMARY', 'taskDefinition': NEW_ARN, 'desiredCount': 2, 'pendingCount': 1,
                 'runningCount': 1},
                {'status': 'ACTIVE', 'taskDefinition': OLD_ARN, 'desiredCount': 2, 'pendingCount': 0,
                 'runningCount': 1},
            ],
            'events': [
                {'createdAt': now - timedelta(hours=1), 'message': '(service foobar) has reached a steady state.'},
                {'createdAt': now + timedelta(seconds=5), 'message': '(service foobar) has started 1 tasks.'},
            ],
        })

    def test_deploying_renders_deployments_and_new_events(self):
        with OutputCapture() as output:
            self.hook('DEPLOYING', self.service, 3, **HOOK_KWARGS)
        self.assertTrue('Deployment status (3/31)' in output.captured)
        self.assertTrue('PRIMARY' in output.captured)
        self.assertTrue(NEW_ARN in output.captured)
        self.assertTrue(OLD_ARN in output.captured)
        self.assertTrue('has started 1 tasks' in output.captured)
        self.assertFalse('has reached a steady state' in output.captured)

    def test_deploying_twice(self):
        with OutputCapture() as output:
            self.hook('DEPLOYING', self.service, 1, **HOOK_KWARGS)
            self.hook('DEPLOYING', self.service, 2, **HOOK_KWARGS)
        self.assertEqual(output.captured.count('has started 1 tasks'), 2)

    def test_no_events(self):
        self.service.data['events'] = []
        with OutputCapture() as output:
            self.hook('DEPLOYING', self.service, 1, **HOOK_KWARGS)
        self.assertTrue('Service events' in output.captured)

    def test_terminal_states(self):
        with OutputCapture() as output:
            self.hook('STABLE', self.service, 4, **HOOK_KWARGS)
            self.hook('TIMED_OUT', self.service, 31, **HOOK_KWARGS)
            self.hook('CANCELLED', None, 5, **HOOK_KWARGS)
        self.assertTrue('Service is stable!' in output.captured)
        self.assertTrue('Timed out waiting' in output.captured)
        self.assertTrue('Cancelled while waiting' in output.captured)


class TestECSDeploymentTickHook(unittest.TestCase):

    def test_ticks(self):
        hook = ECSDeploymentTickHook('foobar-cluster:foobar')
        with OutputCapture() as output:
            for attempt in range(1, 12):
                hook('DEPLOYING', None, attempt, **HOOK_KWARGS)
            hook('STABLE', None, 12, **HOOK_KWARGS)
        output.compare('.........|.')
