
default_kolbenspur = {
"motor": {
    "zylinder":                          4,      # -
    "drehzahl":                     1000.0,      # rpm
    "hub":                             1.0,      # m (visual)
    "zylinderabstand":                 1.2,      # m
    },
"fahrzeug": {
    "geschwindigkeit":                50.0,      # km/h
    },
"simulation": {
    "zeitraffer":                      1.0,      # -
    "spurlaenge":                      100,      # samples per trail
    "dt":                          1. / 60.,     # s - headless frame step
    },
"darstellung": {
    "bildrate":                       60.0,      # Hz
    "fahrbahn raster":                10.0,      # m per texture repeat
    "karosserie":        (4.5, 3.0, 10.0),       # m - width, height, length
    },
}
