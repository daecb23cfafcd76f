from rich.pretty import pprint

from myargs import *


if __name__ == '__main__':
    parser = ArgumentParser("my_program", "my_program [options]", "This is a sample program.", "Epilog message", shell=True)
    parser.add_positional("o", "output", True, 1, "default_output.txt", "Output file")
    parser.add_keyvalue("v", "verbose", False, "false", "Enable verbose mode")

    with parser:
        parser.parse()
        if parser.get_flag("help"):
            parser.print_help()
        else:
            pprint({"output": parser.get_positional("output"), "verbose": parser.get_keyvalue("verbose")})
