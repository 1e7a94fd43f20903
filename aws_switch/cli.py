"""Command-line interface for aws-switch."""

import argparse
import logging
import shutil
import sys

from tabulate import tabulate

from .aws_cli import AwsCli
from .credentials import describe_expiry
from .default_profile import get_default
from .errors import AwsCliNotFoundError, AwsSwitchError, format_error_chain, iter_error_chain
from .profiles import configure_sso_profile, create_profile, delete_profiles, list_profiles, validate_profile_name
from .refresh import refresh_credentials
from .regions import DEFAULT_REGION, list_regions

LOG = logging.getLogger('aws_switch')

AWS_CLI_INSTALL_URL = 'https://docs.aws.amazon.com/cli/latest/userguide/getting-started-install.html'


def setup_logging(verbose):
    if not LOG.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s: %(message)s"))
        LOG.addHandler(handler)
    LOG.setLevel(logging.DEBUG if verbose else logging.WARNING)


def print_header(title):
    terminal_width = shutil.get_terminal_size().columns
    print(f"\n{title}")
    print("=" * min(80, terminal_width))
    print()


def print_error(message, error=None):
    """Print an error and its chain of causes."""
    lines = [message]
    if error is not None:
        lines.append(format_error_chain(error))
    text = '\n'.join(lines)
    if not text.lower().startswith('error'):
        text = f'Error: {text}'
    print(f"❌ {text}")

    if error is not None and any(isinstance(e, AwsCliNotFoundError) for e in iter_error_chain(error)):
        print(f"\n   To fix this issue, try installing the AWS CLI v2: {AWS_CLI_INSTALL_URL}")


def print_current_default():
    default = get_default()
    profile = default['profile']
    if not profile:
        print("Current default profile: unknown (pick one up in the list below and we'll remember next time)\n")
        return

    message = f"Current default profile: {profile}"
    expiry = describe_expiry(default['expiry_date'])
    if expiry['status'] == 'expired':
        message += "  ⚠️  WARNING: Expired"
    elif expiry['status'] == 'expiring':
        message += "  ⚠️  WARNING: Expires in less than 2 minutes"
    elif expiry['status'] == 'valid':
        message += f"  INFO: This profile expires in {expiry['minutes_left']:.2f} minutes"
    print(message + "\n")


def print_profiles(profiles):
    table_data = [
        [index, profile.friendly_name, profile.region or 'N/A', 'SSO' if profile.is_sso else 'Static']
        for index, profile in enumerate(profiles, start=1)
    ]
    headers = ['#', 'Profile', 'Region', 'Type']
    print(tabulate(table_data, headers=headers, tablefmt='fancy_grid'))
    print()


def choose_profile(profiles):
    """Ask the user to pick a profile by number; None if they abort."""
    answer = input(f"   Choose a profile [1-{len(profiles)}] (empty to abort): ").strip()
    if not answer:
        return None
    if not answer.isdigit() or not 1 <= int(answer) <= len(profiles):
        print(f"❌ Error: '{answer}' is not a valid choice.")
        return None
    return profiles[int(answer) - 1]


def confirm():
    confirmation = input("   Type 'yes' to continue: ").strip().lower()
    if confirmation != 'yes':
        print("❌ Operation cancelled.")
        return False
    return True


def prompt_required(label, validator=None, default=None):
    """Prompt until a non-empty (and valid) value is entered."""
    suffix = f" [{default}]" if default else ""
    while True:
        value = input(f"   {label}{suffix}: ").strip() or default
        if not value:
            print(f"   ⚠️  {label} is required")
            continue
        if validator:
            try:
                validator(value)
            except AwsSwitchError as e:
                print(f"   ⚠️  {e}")
                continue
        return value


def prompt_region(label='Region'):
    regions = list_regions()

    def validate_region(value):
        if value not in regions:
            raise AwsSwitchError(f'Unknown region "{value}". Choose one of: {", ".join(regions)}')

    return prompt_required(label, validate_region, default=DEFAULT_REGION)


def load_profiles(cli):
    try:
        return list_profiles(cli)
    except AwsSwitchError as e:
        print_error('Fail to list profiles', e)
        return None


def switch_profile(cli):
    """Show the profiles, let the user pick one and make it the default."""
    print_header("🔀 AWS Profile Switcher")
    print_current_default()

    profiles = load_profiles(cli)
    if profiles is None:
        return 1
    if not profiles:
        print("❌ No AWS profiles found in ~/.aws/config")
        return 1

    print_profiles(profiles)
    profile = choose_profile(profiles)
    if profile is None:
        return 1

    return apply_profile(profile, cli)


def apply_profile(profile, cli, force=False):
    print(f"\n🔑 Getting credentials for profile: {profile.name}\n")
    result = refresh_credentials(profile, cli=cli, force=force)
    if not result['success']:
        print_error(result['message'], result.get('error'))
        return 1

    print(f"✅ {result['message']}")
    credentials = result.get('credentials')
    if credentials and credentials.is_temporary:
        expiry = describe_expiry(credentials.expiry_date)
        if expiry['status'] == 'valid':
            print(f"   Temporary credentials, valid for {expiry['minutes_left']:.2f} minutes")
    print()
    return 0


def show_profiles(cli):
    print_header("📋 AWS Profiles")
    profiles = load_profiles(cli)
    if profiles is None:
        return 1
    if not profiles:
        print("❌ No AWS profiles found in ~/.aws/config")
        return 0

    print(f"📋 Found {len(profiles)} profile(s)\n")
    print_profiles(profiles)
    return 0


def new_profile(cli, sso=False):
    print_header("➕ Create AWS Profile")
    name = prompt_required('Profile name', validate_profile_name)

    if sso:
        result = configure_sso_profile(name, cli)
    else:
        access_key = prompt_required('AWS access key id')
        secret_key = prompt_required('AWS secret access key')
        region = prompt_region()
        result = create_profile(
            name,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region=region
        )

    if not result['success']:
        print_error(result['message'])
        return 1
    print(f"✅ {result['message']}\n")
    return 0


def remove_profiles(names):
    print_header("🗑️  Delete AWS Profiles")
    print(f"⚠️  Warning: Profile(s) {', '.join(names)} will be removed from ~/.aws/config and ~/.aws/credentials")
    if not confirm():
        return 1

    result = delete_profiles(names)
    if not result['success']:
        print_error(result['message'])
        return 1
    print(f"✅ {result['message']}\n")
    return 0


def refresh_profile(profile_name, cli):
    """Force a new login for a profile and make it the default."""
    print_header("🔄 AWS Credential Refresh")
    profiles = load_profiles(cli)
    if profiles is None:
        return 1

    profile = next((p for p in profiles if p.name == profile_name), None)
    if profile is None:
        print(f"❌ Error: Profile \"{profile_name}\" not found")
        return 1

    return apply_profile(profile, cli, force=profile.is_sso)


def main(argv=None):
    """Main function to parse arguments and route to appropriate command."""
    parser = argparse.ArgumentParser(
        prog='aws-switch',
        description='Switch the AWS default profile, including SSO profiles',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  aws-switch                     # Choose a profile and make it the default
  aws-switch list                # List all profiles
  aws-switch create              # Create a profile with static keys
  aws-switch create --sso        # Create an SSO profile with the AWS CLI wizard
  aws-switch delete dev staging  # Delete profiles
  aws-switch refresh my-sso      # Log in again and refresh the default profile
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Print debug logs to stderr')

    subparsers = parser.add_subparsers(dest='command')
    subparsers.add_parser('switch', help='Choose a profile and make it the default (default command)')
    subparsers.add_parser('list', help='List all profiles')

    create_parser = subparsers.add_parser('create', help='Create a new profile')
    create_parser.add_argument('--sso', action='store_true', help='Run the AWS CLI SSO wizard')

    delete_parser = subparsers.add_parser('delete', help='Delete profiles')
    delete_parser.add_argument('profiles', nargs='+', metavar='PROFILE')

    refresh_parser = subparsers.add_parser('refresh', help='Refresh a profile and make it the default')
    refresh_parser.add_argument('profile', metavar='PROFILE')

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    cli = AwsCli()
    try:
        if args.command == 'list':
            return show_profiles(cli)
        if args.command == 'create':
            return new_profile(cli, sso=args.sso)
        if args.command == 'delete':
            return remove_profiles(args.profiles)
        if args.command == 'refresh':
            return refresh_profile(args.profile, cli)
        return switch_profile(cli)
    except AwsSwitchError as e:
        print_error(f"Fail to run the {args.command or 'switch'} command", e)
        return 1
    except KeyboardInterrupt:
        print("\n❌ Operation cancelled.")
        return 1


if __name__ == '__main__':
    sys.exit(main())
