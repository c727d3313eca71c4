import threading

from cement import Controller
from cement.utils.version import get_version_banner
import click

from ecsdeploy import get_version
from ecsdeploy.config import DeploymentConfig
from ecsdeploy.core.rollout import RollingDeployment
from ecsdeploy.core.waiters.hooks.ecs import ECSDeploymentStatusWaiterHook, ECSDeploymentTickHook
from ecsdeploy.exceptions import ConfigValidationError

from .utils import cancel_on_signals, handle_deploy_exceptions


VERSION_BANNER = """
ecs-deploy-%s: Rolling deploys for single container AWS ECS services
---
%s
""" % (get_version(), get_version_banner())

EPILOG = """
examples:
  ecs-deploy --region region --cluster cluster --service service --image image [--slack-channel channel --slack-token token]
  ecs-deploy --region region --cluster cluster --service service --image image [--container-definition-patch '{"cpu":64}']
  ecs-deploy --region region --cluster cluster --service service --image image [--container-definition-patch '{"cpu":64}'] [--timeout 60]
"""


class Base(Controller):
    class Meta:
        label = 'base'

        # text displayed at the top of --help output
        description = 'ecs-deploy: deploy a new image to an ECS service, and roll back if it does not stabilize'
        epilog = EPILOG

        # controller level arguments. ex: 'ecs-deploy --version'
        arguments = [
            ### add a version banner
            (['-v', '--version'], {'action': 'version', 'version': VERSION_BANNER}),
            (
                ['--region'],
                {
                    'dest': 'region',
                    'action': 'store',
                    'default': None,
                    'help': 'The AWS region the cluster lives in (required)'
                }
            ),
            (
                ['--cluster'],
                {
                    'dest': 'cluster',
                    'action': 'store',
                    'default': None,
                    'help': 'The name of the ECS cluster (required)'
                }
            ),
            (
                ['--service'],
                {
                    'dest': 'service',
                    'action': 'store',
                    'default': None,
                    'help': 'The name of the ECS service to deploy (required)'
                }
            ),
            (
                ['--image'],
                {
                    'dest': 'image',
                    'action': 'store',
                    'default': None,
                    'help': 'The docker image the service should run (required)'
                }
            ),
            (
                ['--container-definition-patch'],
                {
                    'dest': 'container_definition_patch',
                    'action': 'store',
                    'default': None,
                    'help': 'A JSON object whose keys override those in the container definition'
                }
            ),
            (
                ['--slack-channel'],
                {
                    'dest': 'slack_channel',
                    'action': 'store',
                    'default': None,
                    'help': 'Slack channel to notify if we have to roll back'
                }
            ),
            (
                ['--slack-token'],
                {
                    'dest': 'slack_token',
                    'action': 'store',
                    'default': None,
                    'help': 'Slack incoming webhook token, e.g. T000/B000/XXXX'
                }
            ),
            (
                ['--timeout'],
                {
                    'dest': 'timeout',
                    'action': 'store',
                    'default': None,
                    'help': 'Seconds to wait for the service to stabilize before rolling back. Default: 60'
                }
            ),
            (
                ['--poll-interval'],
                {
                    'dest': 'poll_interval',
                    'action': 'store',
                    'default': None,
                    'help': 'Seconds between checks of the service. Default: 2'
                }
            ),
            (
                ['--verbose'],
                {
                    'dest': 'verbose',
                    'action': 'store_true',
                    'default': False,
                    'help': 'Show the deployments and service events on every check'
                }
            ),
        ]

    def get_config(self) -> DeploymentConfig:
        """
        Build our :py:class:`DeploymentConfig` from the command line, falling back to
        the config file for anything not given there.
        """
        pargs = self.app.pargs
        config = self.app.config
        return DeploymentConfig.new(
            region=pargs.region,
            cluster=pargs.cluster,
            service=pargs.service,
            image=pargs.image,
            container_definition_patch=pargs.container_definition_patch,
            slack_channel=pargs.slack_channel or config.get('plugin.slack', 'channel'),
            slack_token=pargs.slack_token or config.get('plugin.slack', 'token'),
            timeout=pargs.timeout if pargs.timeout is not None else config.get('ecsdeploy', 'timeout'),
            poll_interval=(
                pargs.poll_interval if pargs.poll_interval is not None else config.get('ecsdeploy', 'poll_interval')
            ),
        )

    def _default(self):
        """Default action: deploy."""
        try:
            deployment_config = self.get_config()
        except ConfigValidationError as e:
            for error in e.errors:
                click.secho(error, fg='red', err=True)
            click.echo('')
            self.app.args.print_help()
            self.app.exit_code = e.exit_code
            return
        self.deploy(deployment_config)

    @handle_deploy_exceptions
    def deploy(self, deployment_config: DeploymentConfig) -> None:
        if self.app.pargs.verbose:
            hooks = [ECSDeploymentStatusWaiterHook(deployment_config.pk)]
        else:
            hooks = [ECSDeploymentTickHook(deployment_config.pk)]
        cancel_event = threading.Event()
        click.secho(
            'Deploying {} to service {} in cluster {} ({})'.format(
                deployment_config.image,
                deployment_config.service,
                deployment_config.cluster,
                deployment_config.region
            ),
            fg='cyan'
        )
        with cancel_on_signals(cancel_event):
            result = RollingDeployment(deployment_config, hooks=hooks, cancel_event=cancel_event).run()
        click.secho(
            'New version of {} deployed successfully: {}'.format(deployment_config.service, result.new_arn),
            fg='green'
        )
        self.app.exit_code = 0
