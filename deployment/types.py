import click


class MinInt(click.ParamType):
    name = "minint"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        try:
            ivalue = int(value)
        except ValueError:
            self.fail(f"{value} is not a valid integer", param, ctx)
        if ivalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return ivalue


class Seconds(click.ParamType):
    name = "seconds"

    def convert(self, value, param, ctx):
        try:
            fvalue = float(value)
        except ValueError:
            self.fail(f"{value} is not a valid number of seconds", param, ctx)
        if fvalue <= 0:
            self.fail(f"{value} must be a positive number of seconds", param, ctx)
        return fvalue
