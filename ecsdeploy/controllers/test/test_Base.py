import unittest

from mock import Mock
from testfixtures import Replacer

from ecsdeploy.config import DeploymentConfig
from ecsdeploy.core.rollout import DeploymentResult
from ecsdeploy.core.waiters import STABLE
from ecsdeploy.core.waiters.hooks.ecs import ECSDeploymentStatusWaiterHook, ECSDeploymentTickHook
from ecsdeploy.exceptions import APIFailure, DeploymentCancelled, DeploymentFailed, RollbackFailed
from ecsdeploy.main import ECSDeployAppTest


OLD_ARN = 'arn:aws:ecs:us-west-2:123456789012:task-definition/foobar:1'
NEW_ARN = 'arn:aws:ecs:us-west-2:123456789012:task-definition/foobar:2'

REQUIRED_ARGS = [
    '--region', 'us-west-2',
    '--cluster', 'foobar-cluster',
    '--service', 'foobar',
    '--image', 'foobar:1.2.3',
]


class TestBase(unittest.TestCase):

    def setUp(self):
        self.deployment = Mock()
        self.deployment.return_value.run.return_value = DeploymentResult(
            service='foobar',
            old_arn=OLD_ARN,
            new_arn=NEW_ARN,
            state=STABLE,
            num_attempts=3,
            elapsed=6.0
        )
        self.replacer = Replacer()
        self.replacer.replace('ecsdeploy.controllers.base.RollingDeployment', self.deployment)

    def tearDown(self):
        self.replacer.restore()

    def run_app(self, argv):
        with ECSDeployAppTest(argv=argv) as app:
            app.run()
            return app

    def deployment_config(self) -> DeploymentConfig:
        return self.deployment.call_args[0][0]

    def test_success(self):
        app = self.run_app(REQUIRED_ARGS)
        self.assertEqual(app.exit_code, 0)
        config = self.deployment_config()
        self.assertEqual(config.pk, 'foobar-cluster:foobar')
        self.assertEqual(config.image, 'foobar:1.2.3')
        self.assertEqual(config.timeout, 60)
        self.assertEqual(config.poll_interval, 2)
        self.assertFalse(config.notifications_enabled)

    def test_options_are_passed_through(self):
        self.run_app(REQUIRED_ARGS + [
            '--container-definition-patch', '{"cpu": 64}',
            '--slack-channel', '#deploys',
            '--slack-token', 'T000/B000/XXXX',
            '--timeout', '120',
            '--poll-interval', '5',
        ])
        config = self.deployment_config()
        self.assertEqual(config.patch, {'cpu': 64})
        self.assertEqual(config.slack_channel, '#deploys')
        self.assertEqual(config.slack_token, 'T000/B000/XXXX')
        self.assertEqual(config.timeout, 120)
        self.assertEqual(config.poll_interval, 5)

    def test_tick_hook_by_default(self):
        self.run_app(REQUIRED_ARGS)
        hooks = self.deployment.call_args[1]['hooks']
        self.assertEqual(len(hooks), 1)
        self.assertTrue(isinstance(hooks[0], ECSDeploymentTickHook))

    def test_status_hook_when_verbose(self):
        self.run_app(REQUIRED_ARGS + ['--verbose'])
        hooks = self.deployment.call_args[1]['hooks']
        self.assertTrue(isinstance(hooks[0], ECSDeploymentStatusWaiterHook))

    def test_missing_arguments(self):
        app = self.run_app(['--region', 'us-west-2'])
        self.assertEqual(app.exit_code, 1)
        self.deployment.assert_not_called()

    def test_bad_patch(self):
        app = self.run_app(REQUIRED_ARGS + ['--container-definition-patch', '[1, 2]'])
        self.assertEqual(app.exit_code, 1)
        self.deployment.assert_not_called()

    def test_bad_timeout(self):
        app = self.run_app(REQUIRED_ARGS + ['--timeout', 'soon'])
        self.assertEqual(app.exit_code, 1)
        self.deployment.assert_not_called()

    def test_rolled_back(self):
        self.deployment.return_value.run.side_effect = DeploymentFailed('foobar', NEW_ARN, OLD_ARN)
        app = self.run_app(REQUIRED_ARGS)
        self.assertEqual(app.exit_code, 1)

    def test_api_failure(self):
        self.deployment.return_value.run.side_effect = APIFailure('describe_services', 'AccessDenied')
        app = self.run_app(REQUIRED_ARGS)
        self.assertEqual(app.exit_code, 1)

    def test_rollback_failed(self):
        self.deployment.return_value.run.side_effect = RollbackFailed(
            'foobar', NEW_ARN, OLD_ARN, APIFailure('update_service', 'AccessDenied')
        )
        app = self.run_app(REQUIRED_ARGS)
        self.assertEqual(app.exit_code, 3)

    def test_cancelled(self):
        self.deployment.return_value.run.side_effect = DeploymentCancelled('foobar', NEW_ARN, OLD_ARN)
        app = self.run_app(REQUIRED_ARGS)
        self.assertEqual(app.exit_code, 130)
