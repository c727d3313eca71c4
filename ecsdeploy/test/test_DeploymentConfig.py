import unittest

from ecsdeploy.config import DeploymentConfig
from ecsdeploy.exceptions import ConfigValidationError


class TestDeploymentConfig_new(unittest.TestCase):

    REQUIRED = {
        'region': 'us-west-2',
        'cluster': 'foobar-cluster',
        'service': 'foobar',
        'image': 'foobar:1.2.3',
    }

    def new(self, **kwargs):
        options = dict(self.REQUIRED)
        options.update(kwargs)
        return DeploymentConfig.new(**options)

    def test_defaults(self):
        config = self.new()
        self.assertEqual(config.timeout, 60)
        self.assertEqual(config.poll_interval, 2)
        self.assertEqual(config.patch, None)
        self.assertFalse(config.notifications_enabled)
        self.assertEqual(config.pk, 'foobar-cluster:foobar')

    def test_missing_required_options(self):
        for name in self.REQUIRED:
            with self.assertRaises(ConfigValidationError) as cm:
                self.new(**{name: None})
            self.assertTrue(f'--{name}' in str(cm.exception))

    def test_all_missing_options_are_reported(self):
        with self.assertRaises(ConfigValidationError) as cm:
            DeploymentConfig.new()
        self.assertEqual(
            cm.exception.errors,
            ['Missing required arguments: --region, --cluster, --service, --image']
        )
        self.assertEqual(cm.exception.exit_code, 1)

    def test_patch(self):
        config = self.new(container_definition_patch='{"cpu": 64, "memory": 128}')
        self.assertEqual(config.patch, {'cpu': 64, 'memory': 128})

    def test_malformed_patch(self):
        with self.assertRaises(ConfigValidationError) as cm:
            self.new(container_definition_patch='{"cpu": ')
        self.assertTrue('Error parsing container definition patch' in str(cm.exception))

    def test_non_object_patches(self):
        for raw in ['[1, 2]', '"cpu"', '64', 'null', 'true']:
            with self.assertRaises(ConfigValidationError) as cm:
                self.new(container_definition_patch=raw)
            self.assertTrue('expected a JSON object' in str(cm.exception), raw)

    def test_timeout(self):
        self.assertEqual(self.new(timeout='61').timeout, 61)
        self.assertEqual(self.new(timeout=120).timeout, 120)

    def test_bad_timeouts(self):
        for raw in ['soon', '0', '-5', '1.5']:
            with self.assertRaises(ConfigValidationError):
                self.new(timeout=raw)

    def test_fractional_seconds_from_the_config_file(self):
        # YAML hands us floats, not strings
        for raw in [1.5, 0.5]:
            with self.assertRaises(ConfigValidationError) as cm:
                self.new(timeout=raw)
            self.assertTrue('--timeout must be a whole number of seconds' in str(cm.exception), raw)
        self.assertEqual(self.new(timeout=90.0).timeout, 90)

    def test_bad_poll_interval(self):
        with self.assertRaises(ConfigValidationError) as cm:
            self.new(poll_interval='0')
        self.assertTrue('--poll-interval' in str(cm.exception))

    def test_notifications_need_channel_and_token(self):
        self.assertFalse(self.new(slack_channel='#deploys').notifications_enabled)
        self.assertFalse(self.new(slack_token='T/B/X').notifications_enabled)
        self.assertTrue(self.new(slack_channel='#deploys', slack_token='T/B/X').notifications_enabled)

    def test_is_immutable(self):
        config = self.new()
        with self.assertRaises(AttributeError):
            config.image = 'other'
