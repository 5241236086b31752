import abc
import argparse
import dataclasses
from typing import Any, Generic, Self, TypeVar
from rich.console import Console


def cli_arg(
    *names: str,
    required: bool = False,
    default=None,
    type: Any = str,
    help: str = "",
    action: str | None = None,
    nargs: str | None = None,
    **dataclass_kwargs,
) -> Any:
    metadata = {
        "help": help,
        "names": names,
        "required": required,
        "action": action,
        "nargs": nargs,
    }
    if action not in ("store_true", "store_false"):
        metadata["type"] = type

    return dataclasses.field(default=default, **dataclass_kwargs, metadata=metadata)


class ArgparseModel:
    '''
    expects the `dataclass` decorator to be used
    along with the `cli_arg` function for field
    definitions. Fields declared without any option
    names become positional arguments.
    '''
    @classmethod
    def register(cls, parser: argparse.ArgumentParser) -> None:
        """
        register the arguments with argparse

        Parameters
        ----------
        parser : argparse.ArgumentParser
        """
        for field in dataclasses.fields(cls):  # type: ignore
            names = field.metadata["names"]
            add_kwargs: dict[str, Any] = {
                "help": field.metadata.get("help", ""),
            }
            if "type" in field.metadata:
                add_kwargs["type"] = field.metadata["type"]

            if field.metadata.get("nargs"):
                add_kwargs["nargs"] = field.metadata["nargs"]

            if not names:
                parser.add_argument(field.name, **add_kwargs)
                continue

            if field.default is not dataclasses.MISSING:
                add_kwargs["default"] = field.default
            add_kwargs["dest"] = field.name
            add_kwargs["required"] = field.metadata["required"]

            if field.metadata.get("action", None):
                add_kwargs["action"] = field.metadata["action"]

            parser.add_argument(*names, **add_kwargs)

    def show(self) -> str:
        """
        Shows the CLI arguments

        Returns
        -------
        str
        """
        output = "CLI Arguments:\n"
        for field in dataclasses.fields(self): # type: ignore
            value = getattr(self, field.name)
            if value is not None:
                output += f" - [bold]{field.name}[/bold]: {value}\n"
        return output

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> Self:
        """
        Create an instance of the model from argparse.Namespace

        Parameters
        ----------
        args : argparse.Namespace

        Returns
        -------
        ArgparseModel
        """

        field_names = {field.name for field in dataclasses.fields(cls)}  # type: ignore
        arg_dict = {k: v for k, v in vars(args).items() if k in field_names}
        return cls(**arg_dict)  # type: ignore


A = TypeVar("A", bound=ArgparseModel)


class CLICommand(abc.ABC, Generic[A]):
    model: type[A]
    console = Console(stderr=True)

    def __init__(self, parser: argparse.ArgumentParser) -> None:
        self.parser = parser
        self.model.register(parser)

    @abc.abstractmethod
    def routine(self, args: A) -> int: ...

    def __call__(self, argv: list[str] | None = None) -> int:
        args = self.parser.parse_args(argv)
        parsed_args: A = self.model.from_namespace(args)
        return self.routine(parsed_args)
