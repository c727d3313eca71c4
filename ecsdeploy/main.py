import logging

from cement import App, TestApp, init_defaults
from cement.core.exc import CaughtSignal

from .config import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT
from .controllers import Base
from .core.aws import build_boto3_session
from .exceptions import ECSDeployError

# configuration defaults
CONFIG = init_defaults('ecsdeploy', 'plugin.slack')
CONFIG['ecsdeploy']['timeout'] = DEFAULT_TIMEOUT
CONFIG['ecsdeploy']['poll_interval'] = DEFAULT_POLL_INTERVAL
CONFIG['plugin.slack']['channel'] = None
CONFIG['plugin.slack']['token'] = None
META = init_defaults('log.logging')
META['log.logging']['log_level_argument'] = ['-l', '--level']


def post_setup_quiet_aws_loggers(app: "ECSDeployApp") -> None:
    """
    boto3 and botocore are very chatty at DEBUG; only let them through when
    we're debugging the app itself.
    """
    if not app.debug:
        logging.getLogger('boto3').setLevel(logging.WARNING)
        logging.getLogger('botocore').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)


def post_arg_parse_build_boto3_session(app: "ECSDeployApp") -> None:
    """
    After parsing arguments but before doing any other actions, build a
    ``boto3.session.Session`` bound to the region we were asked to deploy in.

    Args:
        app: our ECSDeployApp object
    """
    app.log.debug('building boto3 session')
    build_boto3_session(app.pargs.region)


# ------------------
# The cement app
# ------------------

class ECSDeployApp(App):
    """ecs-deploy primary application."""

    class Meta:
        label = 'ecsdeploy'

        config_defaults = CONFIG
        meta_defaults = META

        # call sys.exit() on close
        exit_on_close = True

        # load additional framework extensions
        extensions = [
            'yaml',
            'colorlog',
        ]

        # configuration handler
        config_handler = 'yaml'

        # configuration file suffix
        config_file_suffix = '.yml'

        # extra configuration files, on top of cement's defaults for our label
        config_files = [
            '/etc/ecs-deploy/ecs-deploy.yml',
            '~/.ecs-deploy.yml',
        ]

        # handlers
        log_handler = 'colorlog'

        # register handlers
        handlers = [
            Base,
        ]

        # register hooks
        hooks = [
            ('post_setup', post_setup_quiet_aws_loggers),
            ('post_argument_parsing', post_arg_parse_build_boto3_session),
        ]


class ECSDeployAppTest(TestApp, ECSDeployApp):
    """A sub-class of ECSDeployApp that is better suited for testing."""

    class Meta:
        label = 'ecsdeploy'


# ==========================================
# entrypoint
# ==========================================


def main():
    with ECSDeployApp() as app:
        try:
            app.run()

        except ECSDeployError as e:
            print('{} > {}'.format(e.__class__.__name__, e))
            app.exit_code = e.exit_code

            if app.debug is True:
                import traceback
                traceback.print_exc()

        except CaughtSignal as e:
            # SIGINT or SIGTERM outside of a deploy; nothing was changed in AWS
            print('\n%s' % e)
            app.exit_code = 130


if __name__ == '__main__':
    main()
