"""
Command-line entry point.

Usage:
    python -m blog_client login EMAIL
    python -m blog_client register EMAIL NAME
    python -m blog_client whoami | status | logout
    python -m blog_client posts
    python -m blog_client post POST_ID
"""
import argparse
import asyncio
import getpass
import logging
import sys

from api_client.errors import ApiError
from core.config import get_settings
from services.exceptions import ValidationError

from .client import BlogClient, create_blog_client


async def _login(client: BlogClient, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = await client.session.login(args.email, password)
    if not result.success:
        print(f"Login failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Logged in as {client.session.user.name}")
    return 0


async def _register(client: BlogClient, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = await client.session.register(args.email, password, args.name)
    if not result.success:
        print(f"Registration failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Registered and logged in as {client.session.user.name}")
    return 0


async def _logout(client: BlogClient, args: argparse.Namespace) -> int:  # noqa: ARG001
    await client.session.logout()
    print("Logged out")
    return 0


async def _whoami(client: BlogClient, args: argparse.Namespace) -> int:  # noqa: ARG001
    user = client.session.user
    if user is None:
        print("Not logged in")
        return 1
    print(f"{user.name} <{user.email}>")
    return 0


async def _status(client: BlogClient, args: argparse.Namespace) -> int:  # noqa: ARG001
    status = client.session.session_status()
    if not status.is_active:
        print("No active session")
        return 1
    suffix = " (expiring soon)" if status.is_expiring_soon else ""
    print(f"Session active, expires in {status.formatted_time_remaining}{suffix}")
    return 0


async def _posts(client: BlogClient, args: argparse.Namespace) -> int:  # noqa: ARG001
    posts = await client.content.refresh_posts()
    for post in posts:
        category = f" [{post.category}]" if post.category else ""
        print(f"{post.id}\t{post.title}{category} by {post.author_name}")
    return 0


async def _post(client: BlogClient, args: argparse.Namespace) -> int:
    post = await client.content.fetch_post_by_id(args.post_id)
    if post is None:
        print(f"Post {args.post_id} not found", file=sys.stderr)
        return 1
    comments = await client.content.refresh_comments(post.id)
    print(f"# {post.title}\nby {post.author_name}, {post.created_at:%Y-%m-%d}\n")
    print(post.content)
    print(f"\n{len(comments)} comment(s)")
    for comment in comments:
        print(f"- {comment.author_name}: {comment.content}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blog-client", description="Blog API client.")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and store the session")
    login.add_argument("email")
    login.add_argument("--password", help="Prompted for if omitted")
    login.set_defaults(handler=_login)

    register = commands.add_parser("register", help="Create an account and log in")
    register.add_argument("email")
    register.add_argument("name")
    register.add_argument("--password", help="Prompted for if omitted")
    register.set_defaults(handler=_register)

    commands.add_parser("logout", help="End the stored session").set_defaults(handler=_logout)
    commands.add_parser("whoami", help="Show the logged-in user").set_defaults(handler=_whoami)
    commands.add_parser("status", help="Show time left on the session").set_defaults(
        handler=_status,
    )
    commands.add_parser("posts", help="List posts").set_defaults(handler=_posts)

    post = commands.add_parser("post", help="Show a post and its comments")
    post.add_argument("post_id")
    post.set_defaults(handler=_post)
    return parser


async def _run(args: argparse.Namespace) -> int:
    async with create_blog_client() as client:
        try:
            return await args.handler(client, args)
        except ValidationError as e:
            print(f"Invalid input: {e.message}", file=sys.stderr)
        except ApiError as e:
            print(f"Error: {e.message}", file=sys.stderr)
        return 1


def main() -> None:
    """CLI entry point."""
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
