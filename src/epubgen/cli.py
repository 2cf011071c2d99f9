"""
Command line front-end converting a JSON book description into an EPUB.

Usage:
    epubgen convert <book.json> <output.epub>
    epubgen init <new_directory>
    epubgen help

Settings:
    --verbose                  Log progress messages
    --ignore-failed-downloads  Skip resources that cannot be downloaded
    --epub-version=2|3         EPUB version to generate

Examples:
    epubgen convert my_book/book.json my_book.epub
    epubgen init new_book/
    epubgen help
"""

from json import load, dumps, JSONDecodeError
from logging import basicConfig, INFO
from os import mkdir
from os.path import abspath, dirname, isabs, join
from sys import argv, exit as sys_exit
import sys
from datetime import date

from PIL import Image, ImageDraw

from epubgen.epub import generate_sync
from epubgen.errors import (
    ConfigurationError, DownloadError, PackagingError, ValidationError
)
from epubgen.fetch import is_candidate

OPTIONS = {
    "convert": {
        "usage": "convert <book.json> <output.epub>",
        "description": "Convert a JSON book description into an EPUB",
        "settings": {
            "verbose": {
                "default": False,
                "description": "Log progress messages"
            },
            "ignore-failed-downloads": {
                "default": False,
                "description": "Skip resources that cannot be downloaded"
            },
            "epub-version": {
                "default": None,
                "choices": ("2", "3"),
                "description": "EPUB version to generate"
            }
        },
        "min_args": 2,
        "max_args": 2
    },
    "init": {
        "usage": "init <new_directory>",
        "description": "Create and fill a directory",
        "settings": {},
        "min_args": 1,
        "max_args": 1
    },
    "help": {
        "usage": "help",
        "description": "Display this help message",
        "settings": {},
        "min_args": 0,
        "max_args": 0
    },
}

# Return codes
ERROR_NO_COMMAND = 1
ERROR_UNKNOWN_COMMAND = 2
ERROR_UNKNOWN_OPTION = 3
ERROR_ARGUMENT_COUNT = 4
ERROR_INVALID_SETTING = 5
ERROR_INVALID_BOOK = 6
ERROR_DIRECTORY_EXISTS = 7
ERROR_VALIDATION = 8
ERROR_CONFIGURATION = 9
ERROR_DOWNLOAD = 10
ERROR_PACKAGING = 11


def fatal_error(message: str, exit_code: int) -> None:
    """Print an error message on stderr and exit the program."""
    print(f"ERROR: {message}", file=sys.stderr)
    sys_exit(exit_code)


def resolve_path(book_directory: str, reference: str) -> str:
    """Make a local reference relative to the book directory absolute."""
    if not reference or is_candidate(reference) or isabs(reference):
        return reference

    if reference.startswith("file://"):
        return reference

    return join(book_directory, reference)


def load_book(book_path: str) -> tuple:
    """
    Read a JSON book description and return its raw options and chapters.

    A chapter may give its HTML in ``content`` or in a ``file`` relative to
    the description.
    """
    book_directory = dirname(abspath(book_path))

    try:
        with open(book_path, "rb") as json_file:
            book = load(json_file)
    except (OSError, JSONDecodeError) as error:
        fatal_error(f"Cannot read {book_path}: {error}", ERROR_INVALID_BOOK)

    if not isinstance(book, dict):
        fatal_error(f"{book_path} must contain an object", ERROR_INVALID_BOOK)

    options = dict(book.get("options") or {})
    if options.get("cover"):
        options["cover"] = resolve_path(book_directory, options["cover"])

    if isinstance(options.get("fonts"), list):
        options["fonts"] = [
            dict(font, url=resolve_path(book_directory, font.get("url", "")))
            if isinstance(font, dict) else font
            for font in options["fonts"]
        ]

    chapters = []
    for chapter in book.get("chapters") or []:
        chapter = dict(chapter)
        if "file" in chapter:
            chapter_path = join(book_directory, chapter.pop("file"))
            try:
                with open(chapter_path, "r", encoding="utf-8") as chap:
                    chapter["content"] = chap.read()
            except OSError as error:
                fatal_error(f"Cannot read {chapter_path}: {error}",
                            ERROR_INVALID_BOOK)
        chapters.append(chapter)

    return options, chapters


def convert(book_path: str, output_epub: str, settings: dict) -> None:
    """Generate the EPUB described by a JSON file."""
    options, chapters = load_book(book_path)

    if settings["verbose"]:
        basicConfig(level=INFO, format="%(levelname)s: %(message)s")
        options["verbose"] = True

    if settings["ignore-failed-downloads"]:
        options["ignoreFailedDownloads"] = True

    if settings["epub-version"] is not None:
        options["version"] = int(settings["epub-version"])

    try:
        epub = generate_sync(options, chapters)
    except ValidationError as error:
        fatal_error(str(error), ERROR_VALIDATION)
    except ConfigurationError as error:
        fatal_error(str(error), ERROR_CONFIGURATION)
    except DownloadError as error:
        fatal_error(str(error), ERROR_DOWNLOAD)
    except PackagingError as error:
        fatal_error(str(error), ERROR_PACKAGING)

    with open(output_epub, "wb") as epub_file:
        epub_file.write(epub)


def create_template(template_directory: str) -> None:
    """Create a template directory with a book.json file."""
    # Create the template directory.
    try:
        mkdir(template_directory)
    except FileExistsError:
        fatal_error(
            f"{template_directory} already exists",
            ERROR_DIRECTORY_EXISTS
        )

    # Fill images directory.
    images_directory = join(template_directory, "images")
    mkdir(images_directory)

    cover = Image.new(mode="RGB", size=(800, 1000), color="blue")
    draw = ImageDraw.Draw(cover)
    draw.rectangle([(0, 460), (800, 540)], fill="yellow")
    cover.save(join(images_directory, "cover.jpg"))

    # Create the book.json file.
    description = {
        "options": {
            "title": "The name of this book",
            "author": ["Who has written this book?"],
            "publisher": "Who has made this book available?",
            "description": "An account of this book",
            "lang": "en",
            "date": date.today().strftime(r"%Y-%m-%d"),
            "cover": "images/cover.jpg",
            "version": 3,
            "landmarks": {
                "titlePage": 0,
                "bodyMatter": 1
            }
        },
        "chapters": [
            {
                "title": "Title page",
                "file": "titlepage.html",
                "beforeToc": True,
                "excludeFromToc": True
            },
            {
                "title": "Chapter 1",
                "file": "chapter1.html"
            },
            {
                "title": "Chapter 2",
                "file": "chapter2.html"
            }
        ]
    }

    description_name = join(template_directory, "book.json")
    with open(description_name, "wb") as description_file:
        description_file.write(
            dumps(description, indent=4).encode("utf-8")
        )

    chapters = {
        "titlepage.html": '<p>The name of this book</p>',
        "chapter1.html": '<p>This is the first chapter.</p>',
        "chapter2.html": '<p>This is the second chapter.</p>',
    }
    for filename, html in chapters.items():
        with open(join(template_directory, filename), "wb") as chap:
            chap.write(html.encode("utf-8"))


def print_usage():
    """Print the usage message built from the command table."""
    print("\nUsage: epubgen <command> [--setting[=value] ...] [arguments]\n")

    for infos in OPTIONS.values():
        print(f"  epubgen {infos['usage']}")
        print(f"      {infos['description']}")

        for name, setting in infos['settings'].items():
            flag = f"--{name}"
            if 'choices' in setting:
                flag += "=" + "|".join(setting['choices'])
            print(f"      {flag:<28}{setting['description']}")

        print()


def split_setting(argument: str) -> tuple:
    """Split ``--name[=value]`` into its name and value (True for a flag)."""
    name, separator, value = argument[2:].partition("=")
    return name, value if separator else True


def parse_command_line(arguments: list[str]) -> dict:
    """
    Split the command line into the command, its settings and its arguments.

    Settings may come before or after the command, ``--`` ends them. A known
    command gets the default value of every setting left out.
    """
    settings = {}
    positional = []

    remaining = iter(arguments)
    for argument in remaining:
        if argument == '--':
            positional.extend(remaining)
            break

        if argument.startswith("--"):
            name, value = split_setting(argument)
            settings[name] = value
        else:
            positional.append(argument)

    command = positional.pop(0) if positional else None
    if command in OPTIONS:
        for name, setting in OPTIONS[command]['settings'].items():
            settings.setdefault(name, setting['default'])

    return {
        'command': command,
        'options': settings,
        'arguments': positional
    }


def check_setting(command: str, name: str, value) -> None:
    """Check a setting is known by the command and has an accepted value."""
    setting = OPTIONS[command]['settings'].get(name)
    if setting is None:
        fatal_error(
            f"Unknown option --{name} for command {command}",
            ERROR_UNKNOWN_OPTION
        )

    if value is setting['default']:
        return

    choices = setting.get('choices')
    if choices is None and value is not True:
        fatal_error(f"--{name} takes no value", ERROR_INVALID_SETTING)

    if choices is not None and value not in choices:
        fatal_error(
            f"--{name} expects one of {', '.join(choices)}, got {value}",
            ERROR_INVALID_SETTING
        )


def check_command_line(command_line: dict) -> None:
    """Check the command, its settings and its argument count."""
    command = command_line['command']
    if command is None:
        print_usage()
        fatal_error("No command provided", ERROR_NO_COMMAND)

    if command not in OPTIONS:
        fatal_error(f"Unknown command '{command}'", ERROR_UNKNOWN_COMMAND)

    for name, value in command_line['options'].items():
        check_setting(command, name, value)

    min_args = OPTIONS[command]['min_args']
    max_args = OPTIONS[command]['max_args']
    arg_count = len(command_line['arguments'])
    if not min_args <= arg_count <= max_args:
        expected = (str(min_args) if min_args == max_args
                    else f"between {min_args} and {max_args}")
        fatal_error(
            f"Command {command} expects {expected} arguments, got {arg_count}",
            ERROR_ARGUMENT_COUNT
        )


def main(arguments: list[str]):
    """Main function of the script."""
    command = parse_command_line(arguments)
    check_command_line(command)

    if command['command'] == "convert":
        book_path = command['arguments'][0]
        output_epub = command['arguments'][1]
        convert(book_path, output_epub, command['options'])
        print("SUCCESS: eBook creation complete")

    if command['command'] == "help":
        print_usage()

    if command['command'] == "init":
        template_directory = command['arguments'][0]
        create_template(template_directory)
        print(f"SUCCESS: {template_directory} template created")


def run():
    """Entry point of the epubgen console script."""
    main(argv[1:])


if __name__ == "__main__":
    run()
